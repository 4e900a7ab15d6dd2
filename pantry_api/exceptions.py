

class ApplicationError(Exception):
    """Base class for application-specific errors."""
    pass

class InvalidItemError(ApplicationError, ValueError):
    """Raised when an inventory item name cannot be used as a document id."""
    pass

class ProductNotFoundError(ApplicationError):
    """Raised when a product is not found."""
    pass

class ConcurrencyConflictError(ApplicationError):
    """Raised when a guarded write keeps losing to concurrent writers."""
    retryable = True

class StoreUnavailableError(ApplicationError):
    """Raised when the document store cannot complete a read, write or delete."""
    retryable = True

    def __init__(self, message="The document store is unavailable.", original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception

# Store-level outcomes. The ledger and catalogue translate these; they never
# reach the HTTP layer on their own.

class DocumentNotFoundError(ApplicationError):
    """Raised by a store when the addressed document does not exist."""
    pass

class DocumentAlreadyExistsError(ApplicationError):
    """Raised by a store when creating a document whose id is taken."""
    pass

class PreconditionFailedError(ApplicationError):
    """Raised by a store when a conditional write sees a different etag."""
    pass
