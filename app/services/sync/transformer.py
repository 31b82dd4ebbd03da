"""Transform upstream stream details into catalog documents.

One RawStreamDetail fans out into three documents sharing a synthetic id:
- CatalogEntry  -> listed in the sport catalog
- MetaDocument  -> served by /meta/<Sport>/<id>.json
- StreamDocument -> served by /stream/<Sport>/<id>.json

The synthetic id is "<prefix>_<upstream id>", e.g. "vgstream_101".
"""
from typing import Tuple

from app.core.exceptions import NotFoundError
from app.models.catalog import (
    CatalogEntry,
    CatalogItem,
    MetaDocument,
    RawStreamDetail,
    StreamDocument,
)

DEFAULT_ID_PREFIX = "vgstream"
DEFAULT_STREAM_TITLE = "Source 1 (PPV)"
SPORTS_GENRES = ["Sports"]


def synthetic_id(upstream_id, prefix: str = DEFAULT_ID_PREFIX) -> str:
    """
    Build the published id of an upstream stream.

    Examples:
        >>> synthetic_id(101)
        'vgstream_101'
        >>> synthetic_id("abc", prefix="ppv")
        'ppv_abc'
    """
    return f"{prefix}_{upstream_id}"


def parse_synthetic_id(value: str) -> Tuple[str, str]:
    """
    Split "<prefix>_<upstreamId>" into its parts.

    The prefix is everything before the first underscore, so upstream ids
    may themselves contain underscores.

    Raises:
        NotFoundError: value is not of the form prefix_id
    """
    prefix, sep, upstream_id = value.partition("_")
    if not sep or not prefix or not upstream_id:
        raise NotFoundError(f"Malformed catalog id: {value!r}")
    return prefix, upstream_id


def describe(sport_name: str, detail: RawStreamDetail) -> str:
    description = f"{sport_name} Game: {detail.name}"
    if detail.tag:
        description += f" ({detail.tag})"
    return description


def transform(
    sport_name: str,
    detail: RawStreamDetail,
    id_prefix: str = DEFAULT_ID_PREFIX,
    stream_title: str = DEFAULT_STREAM_TITLE,
) -> CatalogItem:
    """
    Map one upstream detail to its catalog entry, meta and stream documents.

    Pure function: no I/O. A missing tag falls back to `stream_title` for
    the stream and is left out of the description.

    Args:
        sport_name: Sport label used as the document `type`
        detail: Validated upstream detail record
        id_prefix: Prefix of the synthetic id
        stream_title: Stream title used when the detail has no tag

    Returns:
        CatalogItem with the three documents
    """
    item_id = synthetic_id(detail.id, id_prefix)

    entry = CatalogEntry(
        id=item_id,
        type=sport_name,
        name=detail.name,
        poster=detail.poster,
        genres=list(SPORTS_GENRES),
    )

    meta = MetaDocument(
        **entry.model_dump(),
        description=describe(sport_name, detail),
        logo=detail.poster,
        background=detail.poster,
        runtime="",
    )

    stream = StreamDocument(
        title=detail.tag or stream_title,
        url=detail.m3u8,
        type="tv",
        id=detail.id,
    )

    return CatalogItem(entry=entry, meta=meta, stream=stream)
