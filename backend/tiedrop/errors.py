class TiedropError(Exception):
    """Base class for errors raised by the score and chat services."""


class Unauthenticated(TiedropError):
    """A score was submitted without a logged-in identity."""


class StorageUnavailable(TiedropError):
    """An append or query against the storage backend failed."""


class IntegrityViolation(TiedropError):
    """A score references an identity the directory does not know about."""
