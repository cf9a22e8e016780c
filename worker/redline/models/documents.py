from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileFormat(str, Enum):
    PLAIN_TEXT = "plain_text"
    RTF = "rtf"
    WORD = "word"
    PDF = "pdf"
    OTHER = "other"


class ExtractedContent(BaseModel):
    raw_content: str  # original base64, untouched
    html_content: str | None = None
    file_format: FileFormat = FileFormat.OTHER
    error: str | None = None
    truncated: bool = False  # only a preview of the document was rendered

    @property
    def failed(self) -> bool:
        return self.error is not None


class DocumentVersion(BaseModel):
    """One stored revision of an uploaded document."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    document_id: int = Field(..., alias="documentId")
    version: int
    file_name: str = Field(..., alias="fileName")
    file_size: int = Field(0, alias="fileSize")
    file_type: str = Field("", alias="fileType")
    file_content: str = Field(..., alias="fileContent")
    comment: str | None = None
    created_at: datetime | None = Field(None, alias="createdAt")
