"""
JSON-file document stores.

The image-config map and the gallery/projects arrays are each kept in one
JSON file that is read whole and rewritten whole on every change. A lock per
store serialises writers inside this process; separate processes writing the
same file can still lose updates (last write wins).
"""
import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from ambient_frames.config import settings
from ambient_frames.schemas import ImageRef

logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    """Raised when a JSON document cannot be read, parsed or written."""


class JsonDocument:
    """A single JSON file on disk."""

    def __init__(self, path):
        self.path = Path(path)
        self.lock = asyncio.Lock()

    def _read(self, default: Any) -> Any:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return default
        except OSError as e:
            raise DocumentStoreError(f"Cannot read {self.path}: {e}") from e

        try:
            return json.loads(text)
        except ValueError as e:
            raise DocumentStoreError(f"{self.path} does not contain valid JSON") from e

    def _write(self, data: Any) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise DocumentStoreError(f"Cannot write {self.path}: {e}") from e

    async def read(self, default: Any) -> Any:
        """Return the parsed document, or `default` when the file does not exist yet."""
        return await asyncio.to_thread(self._read, default)

    async def write(self, data: Any) -> None:
        await asyncio.to_thread(self._write, data)
        logger.info(f"Wrote {self.path}")


class ImageConfigStore(ABC):
    """
    Mapping of section -> image id -> {url, publicId}.
    Callers depend on this interface only, so the medium can change.
    """

    @abstractmethod
    async def get_all(self) -> Dict[str, Dict[str, dict]]:
        ...

    @abstractmethod
    async def get(self, section: str) -> Dict[str, dict]:
        ...

    @abstractmethod
    async def put(self, section: str, image_id: str, ref: ImageRef) -> None:
        ...


class JsonImageConfigStore(ImageConfigStore):
    def __init__(self, path):
        self._document = JsonDocument(path)

    async def get_all(self) -> Dict[str, Dict[str, dict]]:
        config = await self._document.read({})
        if not isinstance(config, dict):
            raise DocumentStoreError(f"{self._document.path} must contain a JSON object")
        return config

    async def get(self, section: str) -> Dict[str, dict]:
        config = await self.get_all()
        return dict(config.get(section) or {})

    async def put(self, section: str, image_id: str, ref: ImageRef) -> None:
        async with self._document.lock:
            config = await self.get_all()
            config.setdefault(section, {})[image_id] = ref.model_dump(by_alias=True)
            await self._document.write(config)


class JsonListStore:
    """A flat JSON array persisted as one file (gallery, projects)."""

    def __init__(self, path):
        self._document = JsonDocument(path)

    async def load(self) -> List[Any]:
        items = await self._document.read([])
        if not isinstance(items, list):
            raise DocumentStoreError(f"{self._document.path} must contain a JSON array")
        return items

    async def save(self, items: List[Any]) -> None:
        async with self._document.lock:
            await self._document.write(items)


@lru_cache
def get_image_config_store() -> ImageConfigStore:
    return JsonImageConfigStore(settings.IMAGE_CONFIG_PATH)


@lru_cache
def get_gallery_store() -> JsonListStore:
    return JsonListStore(settings.GALLERY_DATA_PATH)


@lru_cache
def get_projects_store() -> JsonListStore:
    return JsonListStore(settings.PROJECTS_DATA_PATH)
