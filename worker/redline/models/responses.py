from pydantic import BaseModel, ConfigDict, Field


class ComparisonResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    diff: str
    content_v1: str = Field("", alias="contentV1")
    content_v2: str = Field("", alias="contentV2")
    error: str | None = None


class CompareFilesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    diff: str
    content_v1: str = Field(..., alias="contentV1")
    content_v2: str = Field(..., alias="contentV2")


class VersionDiffResponse(BaseModel):
    diff: str


class ExportRedlineResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName")
    document: str  # base64 encoded docx


class ErrorResponse(BaseModel):
    error: str
