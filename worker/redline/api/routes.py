import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from redline.core import settings
from redline.models import (
    CompareFilesRequest,
    CompareFilesResponse,
    ErrorResponse,
    ExportRedlineResponse,
    VersionDiffResponse,
)
from redline.services import (
    ComparisonService,
    ContentExtractor,
    DocumentVersionStore,
    InMemoryDocumentVersionStore,
)

logger = logging.getLogger(__name__)

router = APIRouter()

extractor = ContentExtractor(
    rtf_preview_chars=settings.rtf_preview_chars,
    max_file_size_bytes=settings.max_file_size_bytes,
    extract_pdf_text=settings.extract_pdf_text,
)
comparison_service = ComparisonService(extractor)
document_store = InMemoryDocumentVersionStore()


def get_document_store() -> DocumentVersionStore:
    return document_store


@router.post(
    "/api/tools/redline/compare",
    response_model=CompareFilesResponse,
    responses={500: {"model": ErrorResponse}},
)
def compare_files(request: CompareFilesRequest) -> CompareFilesResponse | JSONResponse:
    """Compare two uploaded files and return the redline."""
    result = comparison_service.compare(request.original_file_data, request.new_file_data)
    if not result.success:
        return JSONResponse(status_code=500, content={"error": result.error})

    return CompareFilesResponse(
        success=True,
        diff=result.diff,
        content_v1=result.content_v1,
        content_v2=result.content_v2,
    )


@router.get("/api/document-versions/compare", response_model=VersionDiffResponse)
def compare_document_versions(
    version1: int,
    version2: int,
    store: DocumentVersionStore = Depends(get_document_store),
) -> VersionDiffResponse | JSONResponse:
    """Compare two stored document versions.

    An unknown id is answered with 404 rather than the generic comparison
    failure, so callers can tell a missing version from a broken one.
    """
    first = store.get_document_version(version1)
    second = store.get_document_version(version2)
    if first is None or second is None:
        return JSONResponse(
            status_code=404, content={"message": "One or both document versions not found"}
        )

    result = comparison_service.compare_versions(first, second)
    if not result.success:
        return JSONResponse(
            status_code=500, content={"message": "Failed to compare document versions"}
        )

    return VersionDiffResponse(diff=result.diff)


@router.post(
    "/api/tools/redline/export",
    response_model=ExportRedlineResponse,
    responses={500: {"model": ErrorResponse}},
)
def export_redline(request: CompareFilesRequest) -> ExportRedlineResponse | JSONResponse:
    """Render the comparison as a downloadable .docx redline."""
    try:
        file_name, document = comparison_service.export_redline(
            request.original_file_data, request.new_file_data
        )
    except Exception as e:
        logger.exception("Redline export failed")
        return JSONResponse(
            status_code=500, content={"error": f"Failed to export redline: {e}"}
        )

    return ExportRedlineResponse(file_name=file_name, document=document)
