# listing_gallery/models/exceptions.py


class CatalogError(Exception):
    """Base class for every error raised by the gallery core."""


class ValidationError(CatalogError):
    """The submitted URL was rejected before any network call."""

    def __init__(self, user_message: str):
        super().__init__(user_message)
        self.user_message = user_message


class ExtractionError(CatalogError):
    """The remote extraction call failed (transport, SDK or timeout)."""


class PersistenceReadError(CatalogError):
    pass


class PersistenceWriteError(CatalogError):
    pass
