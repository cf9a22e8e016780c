import base64
import binascii
import html
import logging
import re
from io import BytesIO

import mammoth
from pypdf import PdfReader

from redline.models import ExtractedContent, FileFormat, FilePayload
from redline.services.markup import parse_fragment, render_fragment
from redline.services.style_map import (
    DEFAULT_STYLE_RULES,
    TABLE_ELEMENT_CSS,
    StyleRule,
    build_style_map,
    class_defaults,
)

logger = logging.getLogger(__name__)

RTF_EXTENSIONS = {".rtf"}
RTF_TYPES = {"application/rtf", "text/rtf", "rtf"}
WORD_EXTENSIONS = {".doc", ".docx"}
WORD_TYPES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc",
    "docx",
}
TEXT_EXTENSIONS = {".txt", ".text", ".log", ".md"}
TEXT_TYPES = {"text/plain", "text/markdown", "txt", "text", "log", "md"}
PDF_EXTENSIONS = {".pdf"}
PDF_TYPES = {"application/pdf", "pdf"}

ZIP_BASE64_PREFIX = "UEsDB"  # PK\x03\x04
OLE_BASE64_PREFIX = "0M8R4"  # D0 CF 11 E0
PDF_BASE64_PREFIX = "JVBERi0"  # %PDF-
ZIP_SIGNATURE = "PK\x03\x04"
OLE_SIGNATURE = b"\xd0\xcf\x11\xe0"

RTF_TRUNCATION_NOTICE = "[RTF content truncated for display purposes]"

DATA_URL_RE = re.compile(r"^data:([^;,]*)(?:;[^,]*)?,")


class ExtractionError(Exception):
    pass


class EmptyFileError(ExtractionError):
    pass


class CorruptedFileError(ExtractionError):
    pass


class FileTooLargeError(ExtractionError):
    pass


class ConversionError(ExtractionError):
    pass


def split_data_url(content: str) -> tuple[str, str | None]:
    """Strip a ``data:<mime>;base64,`` prefix, returning (content, mime)."""
    match = DATA_URL_RE.match(content)
    if not match:
        return content, None
    return content[match.end():], match.group(1) or None


def file_extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:].lower() if dot != -1 else ""


def detect_format(payload: FilePayload) -> FileFormat:
    content, data_url_type = split_data_url(payload.content.lstrip())
    extension = file_extension(payload.name)
    mime = (payload.type or data_url_type or "").lower().strip()

    if extension in RTF_EXTENSIONS or mime in RTF_TYPES:
        return FileFormat.RTF
    if (
        extension in WORD_EXTENSIONS
        or mime in WORD_TYPES
        or content.startswith((ZIP_BASE64_PREFIX, OLE_BASE64_PREFIX))
        or ZIP_SIGNATURE in content
    ):
        return FileFormat.WORD
    if extension in TEXT_EXTENSIONS or mime in TEXT_TYPES:
        return FileFormat.PLAIN_TEXT
    if extension in PDF_EXTENSIONS or mime in PDF_TYPES or content.startswith(PDF_BASE64_PREFIX):
        return FileFormat.PDF
    return FileFormat.OTHER


def render_error_fragment(name: str, message: str) -> str:
    return (
        '<div class="extraction-error">'
        f"<p><strong>Unable to read {html.escape(name)}</strong></p>"
        f"<p>{html.escape(message)}</p>"
        "</div>"
    )


def render_preformatted(text: str, css_class: str) -> str:
    escaped = html.escape(text, quote=False)
    return (
        f'<pre class="{css_class}" style="font-family: monospace; white-space: pre-wrap;">'
        f"{escaped}</pre>"
    )


class ContentExtractor:
    """Turns uploaded file payloads into displayable (and diffable) HTML."""

    def __init__(
        self,
        style_rules: tuple[StyleRule, ...] = DEFAULT_STYLE_RULES,
        rtf_preview_chars: int = 1000,
        max_file_size_bytes: int = 10 * 1024 * 1024,
        extract_pdf_text: bool = False,
    ) -> None:
        self.style_map = build_style_map(style_rules)
        self.rtf_preview_chars = rtf_preview_chars
        self.max_file_size_bytes = max_file_size_bytes
        self.extract_pdf_text = extract_pdf_text
        self._class_css = class_defaults(style_rules)
        self._element_css = dict(TABLE_ELEMENT_CSS)

    def extract(self, payload: FilePayload) -> ExtractedContent:
        file_format = detect_format(payload)
        logger.info("Extracting %s as %s", payload.name, file_format.value)

        try:
            html_content, truncated = self._render(payload, file_format)
        except ExtractionError as e:
            logger.warning("Could not read %s: %s", payload.name, e)
            return ExtractedContent(
                raw_content=payload.content,
                html_content=render_error_fragment(payload.name, str(e)),
                file_format=file_format,
                error=str(e),
            )

        return ExtractedContent(
            raw_content=payload.content,
            html_content=html_content,
            file_format=file_format,
            truncated=truncated,
        )

    def _render(self, payload: FilePayload, file_format: FileFormat) -> tuple[str | None, bool]:
        """Returns the HTML view and whether it was cut short."""
        match file_format:
            case FileFormat.RTF:
                return self._render_rtf(self._decode(payload.content))
            case FileFormat.WORD:
                return self._render_word(self._decode(payload.content)), False
            case FileFormat.PLAIN_TEXT:
                text = self._decode_text(self._decode(payload.content))
                return render_preformatted(text, "text-content"), False
            case FileFormat.PDF if self.extract_pdf_text:
                text = self._parse_pdf(self._decode(payload.content))
                return render_preformatted(text, "text-content"), False
            case _:
                return None, False

    def _decode(self, content: str) -> bytes:
        content, _ = split_data_url(content.strip())
        content = "".join(content.split())
        if not content:
            raise EmptyFileError("File content is empty")

        try:
            data = base64.b64decode(content, validate=True)
        except binascii.Error as e:
            raise CorruptedFileError(f"Invalid base64 encoding: {e}")

        if not data:
            raise EmptyFileError("File is empty")
        if len(data) > self.max_file_size_bytes:
            limit_mb = self.max_file_size_bytes // (1024 * 1024)
            raise FileTooLargeError(f"File size exceeds {limit_mb}MB limit")

        return data

    def _decode_text(self, data: bytes) -> str:
        encodings = ["utf-8", "cp1251", "latin-1"]

        for encoding in encodings:
            try:
                text = data.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                continue
            return text.replace("\r\n", "\n").replace("\r", "\n")

        raise CorruptedFileError("Cannot decode text file. Unsupported encoding")

    def _render_rtf(self, data: bytes) -> tuple[str, bool]:
        text = self._decode_text(data)
        preview = text[: self.rtf_preview_chars]
        truncated = len(text) > self.rtf_preview_chars
        if truncated:
            preview += f"...\n\n{RTF_TRUNCATION_NOTICE}"
        return render_preformatted(preview, "rtf-preview"), truncated

    def _render_word(self, data: bytes) -> str:
        if data.startswith(OLE_SIGNATURE):
            raise ConversionError("Legacy .doc format not supported. Please convert to .docx")

        try:
            result = mammoth.convert_to_html(
                BytesIO(data),
                style_map=self.style_map,
                include_default_style_map=True,
                ignore_empty_paragraphs=False,
                id_prefix="doc-",
            )
        except Exception as e:
            raise ConversionError(f"Cannot convert Word document: {e}")

        for message in result.messages:
            logger.info("Document conversion %s: %s", message.type, message.message)

        body = self._apply_default_formatting(result.value)
        return f'<div class="document-content">{body}</div>'

    def _apply_default_formatting(self, converted: str) -> str:
        soup = parse_fragment(converted)
        for tag in soup.find_all(True):
            if tag.has_attr("style"):
                continue

            css = self._element_css.get(tag.name)
            for name in tag.get("class", []):
                if name in self._class_css:
                    css = self._class_css[name]
                    break

            if css:
                tag["style"] = css

        return render_fragment(soup)

    def _parse_pdf(self, data: bytes) -> str:
        try:
            reader = PdfReader(BytesIO(data))
        except Exception as e:
            raise CorruptedFileError(f"Cannot parse PDF file: {e}")

        if len(reader.pages) == 0:
            raise EmptyFileError("PDF file has no pages")

        text_parts = []
        for page in reader.pages:
            try:
                text = page.extract_text()
            except Exception:
                logger.warning("Skipping unreadable PDF page", exc_info=True)
                continue
            if text:
                text_parts.append(text)

        result = "\n\n".join(text_parts).strip()
        if not result:
            raise EmptyFileError("Could not extract text from PDF")

        return result
