"""Addon routes: manifest, catalog, meta and stream resources.

URLs match the static-file layout of the published catalog, so clients
see the same surface whichever publisher backs the server:
- /manifest.json
- /catalog/<Sport>/<sport>Streams.json
- /meta/<Sport>/<prefix>_<upstreamId>.json
- /stream/<Sport>/<prefix>_<upstreamId>.json
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from app.core.config import Settings
from app.core.dependencies import get_publisher, get_settings
from app.core.exceptions import NotFoundError
from app.models.catalog import catalog_payload, meta_payload, stream_payload
from app.services.addon.manifest import build_manifest
from app.services.sync.publisher import CatalogPublisher, catalog_id
from app.services.sync.transformer import parse_synthetic_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["addon"])


def resolve_sport(sport: str, settings: Settings) -> str:
    """Configured spelling of `sport`, or 404 if it is not configured."""
    try:
        return settings.canonical_sport(sport)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown type '{sport}'")


def check_item_id(item_id: str, settings: Settings):
    """404 unless item_id is '<our prefix>_<upstreamId>'."""
    try:
        prefix, _ = parse_synthetic_id(item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if prefix != settings.ID_PREFIX:
        raise HTTPException(status_code=404, detail=f"Unknown id prefix '{prefix}'")


@router.get("/manifest.json")
async def get_manifest(settings: Settings = Depends(get_settings)) -> Dict:
    return build_manifest(settings)


@router.get("/catalog/{sport}/{catalog_name}.json")
async def get_catalog(
    sport: str,
    catalog_name: str,
    publisher: CatalogPublisher = Depends(get_publisher),
    settings: Settings = Depends(get_settings),
) -> Dict:
    """
    Catalog of a sport.

    Returns {"metas": []} when no sync has published this sport yet.
    """
    name = resolve_sport(sport, settings)
    if catalog_name != catalog_id(name):
        raise HTTPException(status_code=404, detail=f"Unknown catalog '{catalog_name}'")

    return catalog_payload(publisher.get_catalog(name))


@router.get("/meta/{sport}/{item_id}.json")
async def get_meta(
    sport: str,
    item_id: str,
    publisher: CatalogPublisher = Depends(get_publisher),
    settings: Settings = Depends(get_settings),
) -> Dict:
    name = resolve_sport(sport, settings)
    check_item_id(item_id, settings)

    try:
        meta = publisher.get_meta(name, item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return meta_payload(meta)


@router.get("/stream/{sport}/{item_id}.json")
async def get_stream(
    sport: str,
    item_id: str,
    publisher: CatalogPublisher = Depends(get_publisher),
    settings: Settings = Depends(get_settings),
) -> Dict:
    """
    Streams of one item.

    An item that is not (or no longer) published has no streams: the
    response is {"streams": []} rather than an error.
    """
    name = resolve_sport(sport, settings)
    check_item_id(item_id, settings)

    try:
        stream = publisher.get_stream(name, item_id)
    except NotFoundError:
        logger.debug(f"No stream {item_id} published for {name}")
        return stream_payload([])

    return stream_payload([stream])
