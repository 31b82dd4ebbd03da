"""
Typed records of the catalog flow.

Usage:
    from app.models import RawStreamDetail, CatalogItem
"""
from app.models.catalog import (
    BehaviorHints,
    CatalogEntry,
    CatalogItem,
    MetaDocument,
    RawStreamDetail,
    RawStreamRef,
    SportListing,
    StreamDocument,
    catalog_payload,
    meta_payload,
    stream_payload,
)

__all__ = [
    "BehaviorHints",
    "CatalogEntry",
    "CatalogItem",
    "MetaDocument",
    "RawStreamDetail",
    "RawStreamRef",
    "SportListing",
    "StreamDocument",
    "catalog_payload",
    "meta_payload",
    "stream_payload",
]
