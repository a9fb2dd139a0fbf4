"""CV Parser module - Validates an uploaded PDF and extracts its text."""

import io
import logging

import pdfplumber
from pdfminer.pdfdocument import PDFEncryptionError, PDFPasswordIncorrect

from .config import Settings
from .errors import ErrorKind, ExtractionError
from .models import Document, ExtractedText

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_SIGNATURE = b"%PDF-"


def extract_text(document: Document, settings: Settings | None = None) -> ExtractedText:
    """
    Extract validated plain text from an uploaded PDF resume.

    Args:
        document: The uploaded document (bytes plus declared media type).
        settings: Size and length limits; defaults apply when omitted.

    Returns:
        Extracted text with provenance.

    Raises:
        ExtractionError: With kind InvalidFormat, Encrypted, Empty,
            NoExtractableText, TooShort or Unreadable.
    """
    settings = settings or Settings()
    validate_document(document, settings)

    text, page_count = _extract_from_pdf(document.content)
    text = _clean_text(text)

    if not text:
        raise ExtractionError(
            ErrorKind.NO_EXTRACTABLE_TEXT,
            "No text could be extracted from the PDF",
            detail=f"{page_count} page(s), 0 characters",
        )

    if len(text) < settings.min_text_chars:
        raise ExtractionError(
            ErrorKind.TOO_SHORT,
            f"Extracted text is too short ({len(text)} characters)",
            detail=f"minimum is {settings.min_text_chars} characters",
        )

    logger.info("Extracted %d characters from %d page(s) (%d bytes)", len(text), page_count, document.size)
    return ExtractedText(text=text, source_size=document.size, page_count=page_count)


def validate_document(document: Document, settings: Settings) -> None:
    """Reject documents that cannot be a usable PDF resume, before parsing."""
    media_type = document.media_type.split(";", 1)[0].strip().lower()
    if media_type != PDF_MEDIA_TYPE:
        raise ExtractionError(
            ErrorKind.INVALID_FORMAT,
            f"Invalid file type: {document.media_type or 'unknown'}. Only PDF files are supported.",
        )

    if document.size == 0:
        raise ExtractionError(ErrorKind.EMPTY, "The uploaded file is empty")

    if document.size > settings.max_document_bytes:
        size_mb = document.size / 1024 / 1024
        max_mb = settings.max_document_bytes / 1024 / 1024
        raise ExtractionError(
            ErrorKind.INVALID_FORMAT,
            f"File too large ({size_mb:.2f}MB). Maximum size is {max_mb:.0f}MB.",
        )

    if document.size < settings.min_document_bytes:
        raise ExtractionError(
            ErrorKind.EMPTY,
            "File appears to be empty or corrupted",
            detail=f"{document.size} bytes",
        )

    if not document.content.lstrip().startswith(PDF_SIGNATURE):
        raise ExtractionError(
            ErrorKind.INVALID_FORMAT,
            "File is declared as PDF but does not contain PDF data",
        )


def _extract_from_pdf(content: bytes) -> tuple[str, int]:
    """Extract text from PDF bytes, classifying parser faults."""
    text_parts: list[str] = []

    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
    except Exception as exc:  # pdfplumber/pdfminer raise a wide variety of types
        if _is_encryption_fault(exc):
            raise ExtractionError(ErrorKind.ENCRYPTED, "The PDF is password protected", cause=exc) from exc
        logger.debug("PDF parser fault", exc_info=True)
        raise ExtractionError(ErrorKind.UNREADABLE, "The PDF could not be parsed", cause=exc) from exc

    if page_count == 0:
        raise ExtractionError(ErrorKind.NO_EXTRACTABLE_TEXT, "The PDF contains no pages")

    return "\n\n".join(text_parts), page_count


def _is_encryption_fault(exc: BaseException) -> bool:
    """Walk the exception chain looking for password or encryption failures.

    pdfplumber wraps pdfminer errors, so the original type may sit in
    ``args`` or ``__cause__`` rather than at the top level.
    """
    seen: set[int] = set()
    pending: list[BaseException] = [exc]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, (PDFPasswordIncorrect, PDFEncryptionError)):
            return True
        message = str(current).lower()
        if "password" in message or "encrypt" in message:
            return True
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                pending.append(linked)
    return False


def _clean_text(text: str) -> str:
    """Clean up whitespace while preserving structure."""
    lines = text.split("\n")
    cleaned_lines = [line.strip() for line in lines]
    cleaned_text = "\n".join(cleaned_lines)

    while "\n\n\n" in cleaned_text:
        cleaned_text = cleaned_text.replace("\n\n\n", "\n\n")

    return cleaned_text.strip()
