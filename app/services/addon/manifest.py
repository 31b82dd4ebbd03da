"""Addon manifest served at /manifest.json.

Declares the three resources the server answers (catalog, meta, stream),
one type and one catalog per configured sport, and the id prefix that
routes meta/stream requests back to this addon.
"""
from typing import Any, Dict

from app.services.sync.publisher import catalog_id

RESOURCES = ["catalog", "meta", "stream"]


def build_manifest(settings) -> Dict[str, Any]:
    sports = list(settings.SPORTS)
    return {
        "id": settings.MANIFEST_ID,
        "version": settings.APP_VERSION,
        "name": settings.APP_NAME,
        "description": f"Live {', '.join(sports)} streams from PPV",
        "resources": list(RESOURCES),
        "types": sports,
        "idPrefixes": [f"{settings.ID_PREFIX}_"],
        "catalogs": [
            {
                "type": sport,
                "id": catalog_id(sport),
                "name": f"{sport} Streams",
            }
            for sport in sports
        ],
    }
