"""Error kinds surfaced to the user.

Every error carries a message meant to be shown as-is under the upload
control, so ``str(ex)`` is always a complete, human-readable sentence.
"""

from __future__ import annotations

from typing import Optional


GENERIC_UPLOAD_ERROR = "An error occurred while processing the file."


class DocumentAnalyzerError(Exception):
    """Base class for every error this frontend shows to the user."""


# -----------------------------
# Detected before any network call
# -----------------------------

class ValidationError(DocumentAnalyzerError):
    """The selected file was rejected locally."""


class InvalidFileType(ValidationError):
    def __init__(self, content_type: Optional[str] = None) -> None:
        super().__init__("Please upload a PDF, TXT, or DOCX file.")
        self.content_type = content_type


class FileTooLarge(ValidationError):
    def __init__(self, size: Optional[int] = None) -> None:
        super().__init__("File size must be less than 50MB.")
        self.size = size


class UploadInProgress(DocumentAnalyzerError):
    def __init__(self) -> None:
        super().__init__("An upload is already in progress. Please wait for it to finish.")


# -----------------------------
# Raised by the HTTP client wrapper
# -----------------------------

class ApiError(DocumentAnalyzerError):
    """A call to the analysis backend failed."""


class ServerError(ApiError):
    """The backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class NoResponse(ApiError):
    def __init__(self) -> None:
        super().__init__("No response from server. Please check if the backend is running.")


class RequestFailed(ApiError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Request failed: {detail}")
        self.detail = detail
