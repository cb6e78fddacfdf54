"""Upload component: file intake, local validation and the submit lifecycle."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from document_analyzer.errors import (
    GENERIC_UPLOAD_ERROR,
    FileTooLarge,
    InvalidFileType,
    UploadInProgress,
    ValidationError,
)
from document_analyzer.models import AnalysisResult, UploadedFile

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = (
    "application/pdf",
    "text/plain",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024


class UploadClient(Protocol):
    async def upload_document(self, file: UploadedFile) -> AnalysisResult: ...


def validate_file(file: UploadedFile) -> None:
    """Reject files the backend would not accept. The first failing rule wins.

    Raises
    ------
    InvalidFileType
        If the MIME type is not PDF, plain text or DOCX.
    FileTooLarge
        If the file is larger than 50 MiB.
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidFileType(file.content_type)
    if file.size > MAX_FILE_SIZE_BYTES:
        raise FileTooLarge(file.size)


async def read_upload(part) -> UploadedFile:
    """Read a browser upload, never more than one byte past the size limit.

    Parts with a disallowed MIME type are not read at all; ``validate_file``
    rejects them on the type alone.
    """
    content_type = part.content_type or ""
    if content_type not in ALLOWED_CONTENT_TYPES:
        content = b""
    else:
        content = await part.read(MAX_FILE_SIZE_BYTES + 1)
    return UploadedFile(name=part.filename or "document", content_type=content_type, content=content)


@dataclass
class UploadState:
    drag_active: bool = False
    error: Optional[str] = None
    loading: bool = False


class UploadComponent:
    """Drives one upload at a time from file selection to completion callback.

    Parameters
    ----------
    client:
        Anything with an async ``upload_document(file)``.
    on_upload_start:
        Called once a file passed validation, right before the network call.
    on_analysis_complete:
        Called with the result, or with None when the upload failed.
    """

    def __init__(
        self,
        client: UploadClient,
        on_upload_start: Callable[[], None],
        on_analysis_complete: Callable[[Optional[AnalysisResult]], None],
    ) -> None:
        self.state = UploadState()
        self._client = client
        self._on_upload_start = on_upload_start
        self._on_analysis_complete = on_analysis_complete
        # Bumped per submission and on close(); a completion whose
        # generation is no longer current must not touch any state.
        self._generation = 0
        self._closed = False

    # -----------------------------
    # Browser events
    # -----------------------------

    def drag_enter(self) -> None:
        self.state.drag_active = True

    def drag_over(self) -> None:
        self.state.drag_active = True

    def drag_leave(self) -> None:
        self.state.drag_active = False

    async def drop(self, files: Sequence[UploadedFile]) -> None:
        self.state.drag_active = False
        await self.handle_files(files)

    async def select(self, files: Sequence[UploadedFile]) -> None:
        await self.handle_files(files)

    # -----------------------------
    # Submit lifecycle
    # -----------------------------

    async def handle_files(self, files: Sequence[UploadedFile]) -> None:
        """Validate and upload the first of ``files``.

        Raises
        ------
        UploadInProgress
            If a previous upload from this component has not finished yet.
        """
        if not files or self._closed:
            return
        if self.state.loading:
            raise UploadInProgress()

        file = files[0]
        try:
            validate_file(file)
        except ValidationError as ex:
            logger.info("Rejected %r (%s, %d bytes): %s", file.name, file.content_type, file.size, ex)
            self.state.error = str(ex)
            return

        self.state.error = None
        self._on_upload_start()
        self.state.loading = True
        self._generation += 1
        generation = self._generation

        result: Optional[AnalysisResult] = None
        try:
            result = await self._client.upload_document(file)
        except Exception as ex:
            logger.warning("Upload of %r failed: %s: %s", file.name, type(ex).__name__, ex)
            if generation == self._generation:
                self.state.error = str(ex) or GENERIC_UPLOAD_ERROR
        finally:
            if generation == self._generation:
                self.state.loading = False
                self._on_analysis_complete(result)
            else:
                logger.info("Dropping completion for %r: component was closed", file.name)

    def close(self) -> None:
        """Detach from the callbacks; an in-flight upload finishes silently."""
        self._closed = True
        self._generation += 1
        self.state.loading = False

    # -----------------------------
    # Rendering
    # -----------------------------

    def render(self, reset_disabled: bool = False) -> str:
        """Return the upload card body as an HTML fragment."""
        state = self.state
        disabled = " disabled" if state.loading else ""
        classes = ["upload-area"]
        if state.drag_active:
            classes.append("drag-active")
        if state.loading:
            classes.append("loading")

        if state.loading:
            inner = (
                '<div class="upload-loading">'
                '<div class="spinner"></div>'
                "<p>Analyzing document...</p>"
                "</div>"
            )
        else:
            inner = (
                '<div class="upload-icon">📎</div>'
                "<p><strong>Drag and drop</strong> your file here, or "
                f'<button type="button" class="upload-button" data-action="browse"{disabled}>browse</button></p>'
                '<p class="file-info">Supports PDF, DOCX, and TXT files up to 50MB</p>'
            )

        error_html = ""
        if state.error:
            error_html = f'<div class="error-message">⚠️ {html.escape(state.error)}</div>'

        reset_attr = " disabled" if (reset_disabled or state.loading) else ""
        return (
            "<h2>📄 Upload Document</h2>"
            '<p class="meta">Upload a PDF, Word document, or text file to analyze</p>'
            f'<div class="{" ".join(classes)}" data-role="drop-zone">'
            f'<input type="file" accept=".pdf,.txt,.docx" data-role="file-input" hidden{disabled} />'
            f"{inner}"
            "</div>"
            f"{error_html}"
            '<div class="row">'
            f'<button type="button" class="btn secondary" data-action="reset"{reset_attr}>Reset</button>'
            "</div>"
        )
