class DatabaseError(Exception):
    """Base for all storage errors."""


class NotFoundError(DatabaseError):
    """No user, course or round with the given id."""


class DuplicateError(DatabaseError):
    """Unique constraint violation (e.g. a user email already in use)."""


class IntegrityError(DatabaseError):
    """Foreign key or check constraint violation on a round write."""


class InvalidPageToken(DatabaseError, ValueError):
    """Round listing cursor could not be decoded."""
