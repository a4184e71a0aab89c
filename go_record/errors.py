"""
Exception types for the Go game record engine.

Illegal moves, navigation at a boundary and lookup misses are not errors:
they are reported as ``False`` / ``None``. Exceptions are reserved for
corrupt input and misuse of the tree API.
"""


class GoRecordError(Exception):
    """Base class for all go_record errors."""


class MalformedTreeError(GoRecordError, ValueError):
    """Raised when serialized move tree data cannot be trusted."""


class NodeNotInTreeError(GoRecordError, ValueError):
    """Raised when switching to a node that does not belong to the tree."""
