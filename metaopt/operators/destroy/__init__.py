"""Destroy operator implementations."""

from .random_removal import random_removal
from .worst_removal import worst_removal

__all__ = [
    "random_removal",
    "worst_removal",
]
