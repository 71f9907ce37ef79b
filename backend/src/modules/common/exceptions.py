"""Domain exception classes for business logic errors.

Every error carries a stable machine-readable ``code`` that is returned to API
callers next to the human-readable message and persisted as the prefix of a
document's ``error_reason`` when a lifecycle run fails.
"""


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    code: str = "internal_error"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class ResourceNotFoundError(DomainError):
    """Raised when a requested resource cannot be found."""

    code = "not_found"


class ValidationError(DomainError):
    """Raised when caller-supplied input is rejected before any state change."""

    code = "invalid_input"


class PermissionDeniedError(DomainError):
    """Raised when the caller identity is missing or not allowed to act."""

    code = "unauthorized"


class ConflictError(DomainError):
    """Raised when an operation conflicts with the current resource state."""

    code = "conflict"


class DocumentNotFoundError(ResourceNotFoundError):
    """Raised when a document does not exist or is not visible to the caller."""

    pass


class MissingInputError(ValidationError):
    """Raised when the client name or the file is missing or empty."""

    code = "missing_input"


class UnsupportedFileTypeError(ValidationError):
    """Raised when an uploaded file's extension maps to no supported type."""

    code = "unsupported_file_type"


class AnalysisInProgressError(ConflictError):
    """Raised when a lifecycle run is requested while another one holds the claim."""

    code = "analysis_in_progress"


class ExtractionError(DomainError):
    """Base class for text extraction failures."""

    code = "extraction_failed"


class CorruptDocumentError(ExtractionError):
    """Raised when the file bytes cannot be parsed as the declared type."""

    code = "corrupt_document"


class EmptyContentError(ExtractionError):
    """Raised when extraction yields no non-whitespace text."""

    code = "empty_content"


class UnsupportedInputError(ExtractionError):
    """Raised for file types that are stored but cannot be text-extracted."""

    code = "unsupported_input"


class AnalysisModelError(DomainError):
    """Base class for language model failures."""

    code = "analysis_failed"


class ModelUnavailableError(AnalysisModelError):
    """Raised on transport, authentication, rate limit or status errors."""

    code = "model_unavailable"


class MalformedModelOutputError(AnalysisModelError):
    """Raised when the structuring response is not a valid list of QA blocks."""

    code = "malformed_model_output"


class StorageError(DomainError):
    """Raised when the blob store rejects or fails an operation."""

    code = "storage_error"


class BlobNotFoundError(StorageError):
    """Raised when downloading a path that holds no blob."""

    code = "blob_not_found"


class StorageUploadError(StorageError):
    """Raised by intake when the uploaded file could not be stored."""

    code = "storage_upload_failed"


class PersistenceError(DomainError):
    """Raised when a relational store write fails."""

    code = "persistence_failed"


class ClientLookupError(PersistenceError):
    """Raised when the owning client cannot be resolved or created."""

    code = "client_lookup_failed"


class DocumentPersistenceError(PersistenceError):
    """Raised when the document row cannot be inserted."""

    code = "db_insert_failed"


class NotificationError(DomainError):
    """Raised when a transactional email cannot be delivered."""

    code = "email_delivery_failed"


class EmailDeliveryError(NotificationError):
    """Raised when the email provider rejects or fails a send."""

    pass
