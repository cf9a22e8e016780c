import logging
from pathlib import PurePath

from redline.models import ComparisonResult, DocumentVersion, ExtractedContent, FilePayload
from redline.services.diff_service import NO_DIFFERENCES_HTML, HtmlDiffService, render_error_panel
from redline.services.export_service import RedlineExportService
from redline.services.extractor_service import ContentExtractor, ExtractionError
from redline.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "An unknown error occurred while comparing documents"
UNRENDERED_DIFF_HTML = (
    "<p>These files have no text preview, so their contents were not compared. "
    "The two versions differ.</p>"
)


class ComparisonService:
    """Runs extraction, diffing and sanitizing for a pair of documents."""

    def __init__(
        self,
        extractor: ContentExtractor,
        diff_service: HtmlDiffService | None = None,
        exporter: RedlineExportService | None = None,
    ) -> None:
        self.extractor = extractor
        self.diff_service = diff_service or HtmlDiffService()
        self.exporter = exporter or RedlineExportService()

    def compare(self, original: FilePayload, revised: FilePayload) -> ComparisonResult:
        try:
            return self._compare(original, revised)
        except Exception as e:
            logger.exception("Error comparing %s with %s", original.name, revised.name)
            return self._failure(str(e) or UNKNOWN_ERROR)

    def compare_versions(
        self, version_a: DocumentVersion, version_b: DocumentVersion
    ) -> ComparisonResult:
        """Compare two stored versions; the lower version number is the original."""
        older, newer = version_a, version_b
        if version_b.version < version_a.version:
            older, newer = version_b, version_a

        logger.info(
            "Comparing version %s (v%s) with version %s (v%s)",
            older.id,
            older.version,
            newer.id,
            newer.version,
        )
        return self.compare(self._as_payload(older), self._as_payload(newer))

    def export_redline(self, original: FilePayload, revised: FilePayload) -> tuple[str, str]:
        """Build a redline .docx. Returns (file name, base64 document)."""
        first = self.extractor.extract(original)
        second = self.extractor.extract(revised)
        if first.failed and second.failed:
            raise ExtractionError(f"Unable to read either document: {first.error}; {second.error}")
        if not (self._has_text(first) or self._has_text(second)):
            raise ExtractionError("Neither document has a text view to export")

        document = self.exporter.build(
            self.diff_service.project(self._diff_input(first)),
            self.diff_service.project(self._diff_input(second)),
            title=f"{original.name} vs {revised.name}",
        )
        file_name = f"redline_{PurePath(original.name).stem}_vs_{PurePath(revised.name).stem}.docx"
        return file_name, document

    def _compare(self, original: FilePayload, revised: FilePayload) -> ComparisonResult:
        first = self.extractor.extract(original)
        second = self.extractor.extract(revised)

        if first.failed and second.failed:
            message = f"Unable to read either document: {first.error}; {second.error}"
            logger.warning(message)
            return self._failure(message, self._view(first), self._view(second))

        if first.html_content is None or second.html_content is None:
            diff = self._compare_unrendered(first, second)
        else:
            diff = self.diff_service.diff(self._diff_input(first), self._diff_input(second))

        notices = "".join(side.html_content for side in (first, second) if side.failed)
        if first.truncated or second.truncated:
            notices += (
                f"<p><em>Only the first {self.extractor.rtf_preview_chars} characters "
                "of each RTF document were compared.</em></p>"
            )

        return ComparisonResult(
            diff=sanitize(notices + diff),
            content_v1=self._view(first),
            content_v2=self._view(second),
        )

    def _failure(
        self,
        message: str,
        content_v1: str = "Error processing original document",
        content_v2: str = "Error processing new document",
    ) -> ComparisonResult:
        return ComparisonResult(
            success=False,
            diff=sanitize(render_error_panel(message)),
            content_v1=content_v1,
            content_v2=content_v2,
            error=message,
        )

    def _compare_unrendered(self, first: ExtractedContent, second: ExtractedContent) -> str:
        # opaque payloads are only checked for equality, never diffed byte by byte
        if first.raw_content == second.raw_content:
            return NO_DIFFERENCES_HTML
        return UNRENDERED_DIFF_HTML

    @staticmethod
    def _has_text(content: ExtractedContent) -> bool:
        return not content.failed and content.html_content is not None

    @classmethod
    def _diff_input(cls, content: ExtractedContent) -> str:
        # an unreadable side is compared as an empty document
        if not cls._has_text(content):
            return ""
        return content.html_content

    @staticmethod
    def _view(content: ExtractedContent) -> str:
        if content.html_content is not None:
            return content.html_content
        return content.raw_content

    @staticmethod
    def _as_payload(version: DocumentVersion) -> FilePayload:
        return FilePayload(
            name=version.file_name,
            content=version.file_content,
            type=version.file_type,
        )
