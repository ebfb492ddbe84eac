"""
Error types raised by the grocery list core.
"""


class GroceryListError(Exception):
    """Base class for every failure the core reports to its callers."""


class InvalidArgument(GroceryListError, ValueError):
    """Bad input: blank name, negative quantity, unknown format, identity mismatch."""


class IOFailure(GroceryListError, OSError):
    """The backing file could not be read, written or parsed."""
