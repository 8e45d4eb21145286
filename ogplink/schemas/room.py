from datetime import datetime
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
)

DEFAULT_ROOM_NAME = "OGP Link Generator"
DEFAULT_ROOM_DESCRIPTION = (
    "Enter URLs to fetch their OGP details and build link cards. "
    "Publish several links together as a shareable room."
)


_http_url = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    # Validate as HttpUrl but keep the string exactly as submitted
    try:
        _http_url.validate_python(value)
    except ValidationError as exc:
        raise ValueError(f"Invalid URL: {value!r}") from exc
    return value


SubmittedUrl = Annotated[str, AfterValidator(_check_http_url)]


class LinkCreate(BaseModel):
    url: SubmittedUrl
    note: Optional[str] = None


class RoomCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    links: list[LinkCreate] = Field(default_factory=list)


class RoomPublished(BaseModel):
    room_id: str
    url: str


class LinkRead(BaseModel):
    id: int
    url: str
    note: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RoomRead(BaseModel):
    room_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    locked: bool = False
    created_at: Optional[datetime] = None
    links: list[LinkRead]


class RoomSummary(BaseModel):
    id: int
    room_id: str
    room_name: Optional[str] = None
    room_description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
