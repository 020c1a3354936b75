"""Custom exceptions for cross-reference analysis."""


class XrefError(Exception):
    """Base class for cross-reference analysis failures."""


class NotFoundError(XrefError):
    """Method, class, interface, or file could not be resolved by any strategy."""


class IndexUnavailableError(XrefError):
    """The chunk store could not be enumerated, so no index can be built."""


class CollaboratorUnavailableError(XrefError):
    """The similarity collaborator is missing or failed."""


class InvalidQueryError(XrefError, ValueError):
    """A query argument (direction, scope, dependency kind, ...) is not a known value."""
