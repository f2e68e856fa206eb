"""Spreadsheet container detection.

Uploads are identified from their content first: a ZIP signature means an
Office Open XML workbook, an OLE2 compound-file signature means a legacy
binary ``.xls`` file or an encrypted workbook, and anything libmagic reports as
text is read as CSV. The declared extension is only a fallback, and a
mismatch between the two is logged.
"""

from pathlib import Path

import magic

from agri_calendar_extraction.models import FormatInfo, SpreadsheetFormat
from agri_calendar_extraction.utils.exceptions import UnreadableWorkbookError
from agri_calendar_extraction.utils.logging import get_logger

logger = get_logger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIME = "text/csv"

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xls", ".csv"})

EXTENSION_TO_FORMAT: dict[str, SpreadsheetFormat] = {
    ".xlsx": SpreadsheetFormat.XLSX,
    ".csv": SpreadsheetFormat.CSV,
}

FORMAT_TO_MIME: dict[SpreadsheetFormat, str] = {
    SpreadsheetFormat.XLSX: XLSX_MIME,
    SpreadsheetFormat.CSV: CSV_MIME,
}

_TEXT_MIME_ALIASES = {"application/csv", "application/x-csv", "text/x-csv"}


def declared_extension(filename: str | None) -> str | None:
    """Lower-cased extension of ``filename`` including the dot, if any."""
    if not filename:
        return None
    suffix = Path(filename).suffix.lower()
    return suffix or None


class FormatDetector:
    """Identify which loader can open an uploaded spreadsheet."""

    def __init__(self) -> None:
        self._magic = magic.Magic(mime=True)

    def detect(self, content: bytes, extension: str | None = None) -> FormatInfo:
        """Detect the container format of an upload.

        Args:
            content: Raw file bytes.
            extension: Declared extension with dot, e.g. ``".xlsx"``.

        Returns:
            FormatInfo naming the loader to use.

        Raises:
            UnreadableWorkbookError: For empty content, legacy binary or
                encrypted workbooks, and content that is neither a workbook
                nor text.
        """
        extension = extension.lower() if extension else None
        if not content:
            raise UnreadableWorkbookError("Uploaded file is empty", reason="empty")

        if content.startswith(OLE2_SIGNATURE):
            if extension == ".xlsx":
                raise UnreadableWorkbookError(
                    "Workbook is encrypted or password protected",
                    reason="encrypted",
                )
            raise UnreadableWorkbookError(
                "Legacy binary .xls workbooks are not supported; "
                "save the file as .xlsx and upload it again",
                reason="legacy_format",
            )

        if content.startswith(ZIP_SIGNATURE):
            return self._build(SpreadsheetFormat.XLSX, extension, from_content=True)

        detected_mime = self._detect_mime_from_content(content)
        if detected_mime is not None and self._is_text_mime(detected_mime):
            return self._build(SpreadsheetFormat.CSV, extension, from_content=True)

        fallback = EXTENSION_TO_FORMAT.get(extension or "")
        if fallback is SpreadsheetFormat.CSV:
            return self._build(fallback, extension, from_content=False)

        raise UnreadableWorkbookError(
            "File is not a readable spreadsheet",
            reason="unrecognised_content",
            details={"detected_mime_type": detected_mime},
        )

    def _build(
        self,
        detected: SpreadsheetFormat,
        extension: str | None,
        *,
        from_content: bool,
    ) -> FormatInfo:
        expected = EXTENSION_TO_FORMAT.get(extension or "")
        if extension == ".xls":
            expected = SpreadsheetFormat.XLSX
        mismatch = expected is not None and expected is not detected
        if mismatch:
            logger.warning(
                "File extension does not match detected format",
                extension=extension,
                detected_format=detected.value,
            )
        return FormatInfo(
            format=detected,
            mime_type=FORMAT_TO_MIME[detected],
            declared_extension=extension,
            detected_from_content=from_content,
            extension_mismatch=mismatch,
        )

    def _detect_mime_from_content(self, content: bytes) -> str | None:
        try:
            return str(self._magic.from_buffer(content))
        except Exception as e:
            logger.warning(
                "Magic detection failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    @staticmethod
    def _is_text_mime(mime_type: str) -> bool:
        return mime_type.startswith("text/") or mime_type in _TEXT_MIME_ALIASES
