"""Repair operator implementations."""

from .greedy_insertion import greedy_insertion
from .random_insertion import random_insertion

__all__ = [
    "greedy_insertion",
    "random_insertion",
]
