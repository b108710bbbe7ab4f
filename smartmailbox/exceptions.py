"""Custom exception hierarchy for Smart Mailbox.

Every failure the analysis pipeline or the document lifecycle can surface is
one of the families below. Services raise them; the API layer renders them
through a single handler, so a caller always receives exactly one tagged
failure.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Generative output / input validation
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    INPUT_REJECTED = "INPUT_REJECTED"

    # Generative capability
    MODEL_FAILURE = "MODEL_FAILURE"
    RECTIFY_FAILED = "RECTIFY_FAILED"
    EXTRACT_FAILED = "EXTRACT_FAILED"
    EVENT_DETECTION_FAILED = "EVENT_DETECTION_FAILED"

    # Ownership
    INTEGRITY_FAILURE = "INTEGRITY_FAILURE"

    # Persistence
    STORAGE_FAILURE = "STORAGE_FAILURE"
    PARTIAL_WRITE_FAILURE = "PARTIAL_WRITE_FAILURE"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"


class MailboxException(Exception):
    """
    Base exception for all Smart Mailbox errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationFailure(MailboxException):
    """A generative output is missing a required field or carries a placeholder."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILURE,
        status_code: int = 422,
    ):
        details = {"field": field} if field else {}
        super().__init__(message, error_code, status_code=status_code, details=details)


class InputRejectedError(ValidationFailure):
    """Uploaded input was rejected before any generative call was made."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            field=field,
            error_code=ErrorCode.INPUT_REJECTED,
            status_code=400,
        )


# ---------------------------------------------------------------------------
# Generative capability
# ---------------------------------------------------------------------------

class ModelFailure(MailboxException):
    """The generative capability returned nothing usable or could not be reached."""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.MODEL_FAILURE,
    ):
        details = {"model": model} if model else {}
        super().__init__(message, error_code, status_code=502, details=details)


class RectifyFailedError(ModelFailure):
    """The rectifier did not return an image."""

    def __init__(self, message: str = "Failed to crop the document.", model: Optional[str] = None):
        super().__init__(message, model=model, error_code=ErrorCode.RECTIFY_FAILED)


class ExtractFailedError(ModelFailure):
    """The text extractor returned no text."""

    def __init__(self, message: str = "Failed to extract text from the document.", model: Optional[str] = None):
        super().__init__(message, model=model, error_code=ErrorCode.EXTRACT_FAILED)


class EventDetectionFailedError(ModelFailure):
    """Event detection was requested and failed outright."""

    def __init__(self, message: str = "Failed to detect events in the document.", model: Optional[str] = None):
        super().__init__(message, model=model, error_code=ErrorCode.EVENT_DETECTION_FAILED)


# ---------------------------------------------------------------------------
# Ownership and persistence
# ---------------------------------------------------------------------------

class IntegrityFailure(MailboxException):
    """Requester does not own the record it is trying to mutate."""

    def __init__(self, message: str = "You do not have permission to modify this document", doc_id: Optional[str] = None):
        details = {"doc_id": doc_id} if doc_id else {}
        super().__init__(
            message,
            ErrorCode.INTEGRITY_FAILURE,
            status_code=403,
            details=details,
        )


class StorageFailure(MailboxException):
    """Object-store upload or delete failed."""

    def __init__(self, message: str, path: Optional[str] = None, original_error: Optional[Exception] = None):
        details: Dict[str, Any] = {}
        if path:
            details["storage_path"] = path
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.STORAGE_FAILURE,
            status_code=502,
            details=details
        )


class PartialWriteFailure(MailboxException):
    """Bytes were uploaded but the record write failed."""

    def __init__(
        self,
        storage_path: str,
        orphan_removed: bool,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {
            "storage_path": storage_path,
            "orphan_removed": orphan_removed,
        }
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            "Document bytes were stored but the record could not be written",
            ErrorCode.PARTIAL_WRITE_FAILURE,
            status_code=500,
            details=details
        )


class DocumentNotFoundError(MailboxException):
    """Document not found in the record store."""

    def __init__(self, doc_id: str):
        super().__init__(
            f"Document not found: {doc_id}",
            ErrorCode.DOCUMENT_NOT_FOUND,
            status_code=404,
            details={"doc_id": doc_id}
        )
