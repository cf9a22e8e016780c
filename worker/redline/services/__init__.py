from redline.services.comparison_service import ComparisonService
from redline.services.diff_service import HtmlDiffService
from redline.services.export_service import RedlineExportService
from redline.services.extractor_service import ContentExtractor
from redline.services.sanitizer import sanitize
from redline.services.storage import DocumentVersionStore, InMemoryDocumentVersionStore

__all__ = [
    "ComparisonService",
    "ContentExtractor",
    "HtmlDiffService",
    "RedlineExportService",
    "DocumentVersionStore",
    "InMemoryDocumentVersionStore",
    "sanitize",
]
