from redline.models.documents import DocumentVersion, ExtractedContent, FileFormat
from redline.models.requests import CompareFilesRequest, FilePayload
from redline.models.responses import (
    CompareFilesResponse,
    ComparisonResult,
    ErrorResponse,
    ExportRedlineResponse,
    VersionDiffResponse,
)

__all__ = [
    "FilePayload",
    "CompareFilesRequest",
    "CompareFilesResponse",
    "ComparisonResult",
    "VersionDiffResponse",
    "ExportRedlineResponse",
    "ErrorResponse",
    "DocumentVersion",
    "ExtractedContent",
    "FileFormat",
]
