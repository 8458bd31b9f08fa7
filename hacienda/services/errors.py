class ServiceError(Exception):
    """Base class for failures the caller can act on."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ItemNotFoundError(ServiceError):
    pass


class InvalidNameError(ServiceError):
    pass


class InvalidOperationError(ServiceError):
    pass


class StorageOperationError(ServiceError):
    """A call to object storage or the database failed after validation passed."""


class ImportAbortedError(ServiceError):
    pass
