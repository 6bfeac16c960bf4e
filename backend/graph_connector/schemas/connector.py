from typing import Any

from pydantic import BaseModel, Field, field_validator

NO_RESULTS = "No results found"


class FetchedFile(BaseModel):
    """A drive item's content, base64 encoded, with the metadata GPT actions expect."""

    name: str = Field(..., description="File name as reported by Graph")
    mime_type: str = Field(..., description="MIME type from the item's file facet")
    content: str = Field(..., description="Base64 encoded file bytes")


class FetchFailure(BaseModel):
    id: str | None = None
    name: str | None = None
    error: str


class FileSearchResponse(BaseModel):
    openai_file_response: list[FetchedFile] = Field(
        default_factory=list, serialization_alias="openaiFileResponse"
    )
    errors: list[FetchFailure] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SearchRequest(BaseModel):
    searchTerm: str = Field(..., description="Keyword(s) to search the user's files for")

    @field_validator("searchTerm", mode="before")
    @classmethod
    def _scalar_to_str(cls, v: Any) -> Any:
        # Falsy scalars count as a missing term.
        if isinstance(v, bool):
            return "true" if v else ""
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, int | float):
            return str(v) if v else ""
        return v

    class Config:
        json_schema_extra = {"example": {"searchTerm": "budget"}}
