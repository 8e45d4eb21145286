from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OGPRecord(BaseModel):
    """Display metadata for one URL. Never persisted."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    source_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = Field(default=None, serialization_alias="siteName")
    note: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.description or self.image or self.site_name)

    def as_card(self) -> dict:
        # Absent fields are omitted, not rendered as null
        return self.model_dump(by_alias=True, exclude_none=True)


class OGPFetchRequest(BaseModel):
    url: str


class OGPFetchResponse(BaseModel):
    """Shape returned by the trusted metadata endpoint."""

    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = Field(
        default=None, validation_alias="siteName", serialization_alias="siteName"
    )

    model_config = ConfigDict(populate_by_name=True)
