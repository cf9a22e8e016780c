from pydantic import BaseModel, ConfigDict, Field


class FilePayload(BaseModel):
    name: str
    content: str = Field(..., description="Base64 encoded file content")
    type: str = Field("", description="Declared mime type")


class CompareFilesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_file_data: FilePayload = Field(..., alias="originalFileData")
    new_file_data: FilePayload = Field(..., alias="newFileData")
