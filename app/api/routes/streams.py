"""Plain stream listing of a sport: name, playable link, upstream id, thumbnail."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.core.config import Settings
from app.core.dependencies import get_publisher, get_settings
from app.core.exceptions import NotFoundError
from app.services.sync.publisher import CatalogPublisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/streams", tags=["streams"])


class StreamLink(BaseModel):
    """One playable stream of the current generation."""
    name: str
    link: str
    id: str
    thumbnail: str


@router.get("/{sport}", response_model=List[StreamLink])
async def list_stream_links(
    sport: str,
    publisher: CatalogPublisher = Depends(get_publisher),
    settings: Settings = Depends(get_settings),
) -> List[StreamLink]:
    """
    List the published streams of a sport with their playable links.

    Args:
        sport: Configured sport name (case-insensitive)

    Returns:
        One entry per published item, in catalog order
    """
    try:
        name = settings.canonical_sport(sport)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown sport '{sport}'")

    links = []
    for entry in publisher.get_catalog(name):
        try:
            stream = publisher.get_stream(name, entry.id)
        except NotFoundError:
            # Generation swapped between the catalog and stream reads
            continue
        links.append(StreamLink(
            name=entry.name,
            link=stream.url,
            id=str(stream.id),
            thumbnail=entry.poster,
        ))

    return links
