"""
Typed records for the PPV catalog flow.

Upstream side (validated at the client boundary):
- RawStreamRef / SportListing: one sport's entry in GET /api/streams
- RawStreamDetail: the `data` object of GET /api/streams/<id>

Published side (media-addon wire format):
- CatalogEntry: item summary listed in a sport's catalog
- MetaDocument: descriptive record for one item
- StreamDocument: playable URL record for one item
- CatalogItem: the three documents derived from one upstream detail
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

UpstreamId = Union[int, str]


class RawStreamRef(BaseModel):
    """Reference to a stream inside a sport listing."""

    model_config = ConfigDict(extra="ignore")

    id: UpstreamId


class SportListing(BaseModel):
    """A sport/category entry with its ordered stream references."""

    model_config = ConfigDict(extra="ignore")

    id: UpstreamId
    category: str = ""
    streams: List[RawStreamRef] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("streams", mode="before")
    @classmethod
    def _default_streams(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls, sport_id: UpstreamId) -> "SportListing":
        return cls(id=sport_id)


class RawStreamDetail(BaseModel):
    """Upstream detail record for one stream."""

    model_config = ConfigDict(extra="ignore")

    id: UpstreamId
    name: str = ""
    poster: str = ""
    m3u8: str
    tag: Optional[str] = None

    @field_validator("name", "poster", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tag", mode="before")
    @classmethod
    def _none_if_blank(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CatalogEntry(BaseModel):
    """Summary record listed in a sport catalog."""

    id: str
    type: str
    name: str
    poster: str
    genres: List[str] = Field(default_factory=lambda: ["Sports"])


class MetaDocument(CatalogEntry):
    """Descriptive record for one catalog item."""

    description: str
    logo: str
    background: str
    runtime: str = ""


class BehaviorHints(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    not_web_ready: bool = Field(False, alias="notWebReady")


class StreamDocument(BaseModel):
    """Playable entry for one catalog item."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    url: str
    type: str = "tv"
    behavior_hints: BehaviorHints = Field(default_factory=BehaviorHints, alias="behaviorHints")
    id: UpstreamId


class CatalogItem(BaseModel):
    """The catalog entry, meta document and stream document for one upstream item."""

    entry: CatalogEntry
    meta: MetaDocument
    stream: StreamDocument

    @property
    def id(self) -> str:
        return self.entry.id


def catalog_payload(entries: List[CatalogEntry]) -> Dict[str, Any]:
    """Wire shape of a catalog response: {"metas": [...]}."""
    return {"metas": [entry.model_dump(by_alias=True) for entry in entries]}


def meta_payload(meta: MetaDocument) -> Dict[str, Any]:
    """Wire shape of a meta response: {"meta": {...}}."""
    return {"meta": meta.model_dump(by_alias=True)}


def stream_payload(streams: List[StreamDocument]) -> Dict[str, Any]:
    """Wire shape of a stream response: {"streams": [...]}."""
    return {"streams": [stream.model_dump(by_alias=True) for stream in streams]}
