"""Error types reported by the search drivers."""


class ConfigurationError(ValueError):
    """Invalid run setup: empty buffers, missing strategies, empty operator pools."""


class AllocationFailure(MemoryError):
    """Scratch buffers for a run could not be allocated."""
