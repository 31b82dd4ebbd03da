"""Publishers hold the current generation of catalog documents per sport.

Two strategies share one interface:
- MemoryPublisher: in-process table, swapped in a single assignment
- FilePublisher: static JSON files laid out like the served URLs
      <root>/catalog/<Sport>/<sport>Streams.json
      <root>/meta/<Sport>/<id>.json
      <root>/stream/<Sport>/<id>.json

A publish always replaces the sport's whole generation: nothing from a
previous sync stays reachable once publish() returns. The orchestrator is
the only writer; HTTP handlers only use the read methods.
"""
import json
import os
import shutil
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from pydantic import ValidationError

from app.core.config import SAFE_SEGMENT
from app.core.exceptions import NotFoundError, WriteError
from app.core.logging import get_logger
from app.models.catalog import (
    CatalogEntry,
    CatalogItem,
    MetaDocument,
    StreamDocument,
    catalog_payload,
    meta_payload,
    stream_payload,
)

logger = get_logger(__name__)

NAMESPACES = ("catalog", "meta", "stream")


def catalog_id(sport: str) -> str:
    """Catalog id of a sport, e.g. 'NBA' -> 'nbaStreams'."""
    return f"{sport.lower()}Streams"


def unique_items(items: Iterable[CatalogItem]) -> List[CatalogItem]:
    """Drop repeated ids, keeping the first occurrence and listing order."""
    seen = set()
    result = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        result.append(item)
    return result


def is_publishable(item: CatalogItem) -> bool:
    """True if the item id can be used as a file name and a URL path segment."""
    if SAFE_SEGMENT.match(item.id):
        return True
    logger.warning(f"Dropping item with unsafe id {item.id!r}")
    return False


class CatalogPublisher(ABC):
    """Write side (publish) and read side (get_*) of the published catalog."""

    @abstractmethod
    def publish(self, sport: str, items: Iterable[CatalogItem]) -> int:
        """Replace the sport's generation with `items`; returns the number published."""

    @abstractmethod
    def get_catalog(self, sport: str) -> List[CatalogEntry]:
        """Catalog entries of a sport; empty if nothing was ever published."""

    @abstractmethod
    def get_meta(self, sport: str, item_id: str) -> MetaDocument:
        """Meta document of one item. Raises NotFoundError if absent."""

    @abstractmethod
    def get_stream(self, sport: str, item_id: str) -> StreamDocument:
        """Stream document of one item. Raises NotFoundError if absent."""

    @abstractmethod
    def published_sports(self) -> List[str]:
        """Sports with a published generation."""


class _SportTable(NamedTuple):
    catalog: Tuple[CatalogEntry, ...]
    metas: Dict[str, MetaDocument]
    streams: Dict[str, StreamDocument]


class MemoryPublisher(CatalogPublisher):
    """
    In-memory publisher.

    The sport -> table mapping is copied on write and rebound in one
    assignment, so a reader holding the old mapping keeps a consistent
    view of the previous generation.
    """

    def __init__(self):
        self._tables: Dict[str, _SportTable] = {}

    def publish(self, sport: str, items: Iterable[CatalogItem]) -> int:
        items = [item for item in unique_items(items) if is_publishable(item)]
        table = _SportTable(
            catalog=tuple(item.entry for item in items),
            metas={item.id: item.meta for item in items},
            streams={item.id: item.stream for item in items},
        )
        tables = dict(self._tables)
        tables[sport] = table
        self._tables = tables

        logger.info(f"Published {len(items)} items for {sport} (memory)")
        return len(items)

    def get_catalog(self, sport: str) -> List[CatalogEntry]:
        table = self._tables.get(sport)
        return list(table.catalog) if table else []

    def get_meta(self, sport: str, item_id: str) -> MetaDocument:
        table = self._tables.get(sport)
        if table is None or item_id not in table.metas:
            raise NotFoundError(f"No meta {item_id} for {sport}")
        return table.metas[item_id]

    def get_stream(self, sport: str, item_id: str) -> StreamDocument:
        table = self._tables.get(sport)
        if table is None or item_id not in table.streams:
            raise NotFoundError(f"No stream {item_id} for {sport}")
        return table.streams[item_id]

    def published_sports(self) -> List[str]:
        return sorted(self._tables)


def _dump(payload: dict) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


class FilePublisher(CatalogPublisher):
    """
    Static-file publisher.

    Each namespace directory of a sport is written to a hidden staging
    directory first and then renamed over the live one, so readers see
    the old generation until the rename and the new one after it.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def _sport_dir(self, namespace: str, sport: str) -> Path:
        return self.root / namespace / sport

    def _catalog_path(self, sport: str) -> Path:
        return self._sport_dir("catalog", sport) / f"{catalog_id(sport)}.json"

    def _document_path(self, namespace: str, sport: str, item_id: str) -> Path:
        if not SAFE_SEGMENT.match(sport) or not SAFE_SEGMENT.match(item_id):
            raise NotFoundError(f"No {namespace} {item_id} for {sport}")
        return self._sport_dir(namespace, sport) / f"{item_id}.json"

    def publish(self, sport: str, items: Iterable[CatalogItem]) -> int:
        if not SAFE_SEGMENT.match(sport):
            raise WriteError(f"Refusing to publish unsafe sport name {sport!r}")

        items = [item for item in unique_items(items) if is_publishable(item)]
        token = uuid.uuid4().hex[:8]
        staged: Dict[str, Path] = {}

        try:
            for namespace in NAMESPACES:
                stage = self.root / namespace / f".{sport}.staging-{token}"
                stage.mkdir(parents=True)
                staged[namespace] = stage

            (staged["catalog"] / f"{catalog_id(sport)}.json").write_text(
                _dump(catalog_payload([item.entry for item in items])), encoding="utf-8"
            )
            for item in items:
                (staged["meta"] / f"{item.id}.json").write_text(
                    _dump(meta_payload(item.meta)), encoding="utf-8"
                )
                (staged["stream"] / f"{item.id}.json").write_text(
                    _dump(stream_payload([item.stream])), encoding="utf-8"
                )

            self._swap_all(sport, staged, token)
        except OSError as e:
            for stage in staged.values():
                shutil.rmtree(stage, ignore_errors=True)
            raise WriteError(f"Failed to publish {sport} to {self.root}: {e}") from e

        logger.info(f"Published {len(items)} items for {sport} to {self.root}")
        return len(items)

    def _swap_all(self, sport: str, staged: Dict[str, Path], token: str):
        """
        Rename every staged namespace over its live directory.

        Retired directories are only deleted once all namespaces are swapped;
        if a rename fails, the namespaces already swapped are put back.
        """
        swapped: List[Tuple[Path, Optional[Path]]] = []
        try:
            for namespace, stage in staged.items():
                live = self._sport_dir(namespace, sport)
                retired = None
                if live.exists():
                    retired = live.with_name(f".{sport}.old-{token}")
                    os.replace(live, retired)
                swapped.append((live, retired))
                os.replace(stage, live)
        except OSError:
            self._restore(sport, swapped)
            raise

        for _, retired in swapped:
            if retired is not None:
                shutil.rmtree(retired, ignore_errors=True)

    @staticmethod
    def _restore(sport: str, swapped: List[Tuple[Path, Optional[Path]]]):
        for live, retired in reversed(swapped):
            try:
                if live.exists():
                    shutil.rmtree(live)
                if retired is not None:
                    os.replace(retired, live)
            except OSError:
                logger.exception(f"Could not restore {live}; {sport} may mix two generations")

    def _read(self, path: Path) -> dict:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise NotFoundError(f"{path.relative_to(self.root)} is not published") from e

    def get_catalog(self, sport: str) -> List[CatalogEntry]:
        if not SAFE_SEGMENT.match(sport):
            return []
        try:
            payload = self._read(self._catalog_path(sport))
        except NotFoundError:
            return []
        return [CatalogEntry.model_validate(meta) for meta in payload.get("metas", [])]

    def get_meta(self, sport: str, item_id: str) -> MetaDocument:
        payload = self._read(self._document_path("meta", sport, item_id))
        try:
            return MetaDocument.model_validate(payload["meta"])
        except (KeyError, ValidationError) as e:
            raise NotFoundError(f"Unreadable meta {item_id} for {sport}") from e

    def get_stream(self, sport: str, item_id: str) -> StreamDocument:
        payload = self._read(self._document_path("stream", sport, item_id))
        try:
            return StreamDocument.model_validate(payload["streams"][0])
        except (KeyError, IndexError, ValidationError) as e:
            raise NotFoundError(f"Unreadable stream {item_id} for {sport}") from e

    def published_sports(self) -> List[str]:
        catalog_root = self.root / "catalog"
        if not catalog_root.is_dir():
            return []
        return sorted(
            path.name for path in catalog_root.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        )


def build_publisher(settings) -> CatalogPublisher:
    """Create the publisher selected by settings.PUBLISH_MODE."""
    if settings.PUBLISH_MODE == "file":
        logger.info(f"Publishing catalog files under {settings.PUBLISH_DIR}")
        return FilePublisher(settings.PUBLISH_DIR)
    return MemoryPublisher()
