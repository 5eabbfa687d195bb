"""Content sources: where page files come from.

A source answers two questions for a given extension:

    list_eager(ext)  -> {"./Name.ext": raw text}       (read at start-up)
    list_lazy(ext)   -> {"./Name.ext": loader}          (read on demand)

A loader is a zero-argument callable returning an awaitable. Text
formats resolve to the file text; the component format resolves to a
module-like object whose ``default`` attribute is the mountable unit.

Only the top level of a directory or archive is scanned.
"""

from __future__ import annotations

import asyncio
import logging
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import SimpleNamespace
from typing import Any, Awaitable, Callable

from .formats import PageFormat, PageshelfError

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class Component:
    """A component file loaded as a mountable unit."""

    name: str
    path: str
    source: str


def content_key(name: str) -> str:
    """Request identifier for a file name: ``./{name}``."""
    return f"./{name}"


def component_module(key: str, source: str) -> SimpleNamespace:
    """Wrap component source in a module-like namespace.

    The ``default`` attribute is the primary export, mirroring how a
    component module exposes itself to the presentation layer.
    """
    name = PurePosixPath(key).stem
    return SimpleNamespace(default=Component(name=name, path=key, source=source))


class ContentSource(ABC):
    """Abstract provider of page files, keyed by ``./{name}.{ext}``."""

    @abstractmethod
    def list_eager(self, extension: str) -> dict[str, str]:
        """Return raw text of every file with ``extension``."""
        ...

    @abstractmethod
    def list_lazy(self, extension: str) -> dict[str, Loader]:
        """Return a loader for every file with ``extension``."""
        ...


class DirectorySource(ContentSource):
    """Scan a single directory on disk (non-recursive)."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise PageshelfError(f"Content directory not found: {self.directory}")

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.directory)!r})"

    def _files(self, extension: str) -> list[Path]:
        return sorted(p for p in self.directory.glob(f"*.{extension}") if p.is_file())

    def list_eager(self, extension: str) -> dict[str, str]:
        result: dict[str, str] = {}
        for path in self._files(extension):
            try:
                result[content_key(path.name)] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read %s: %s", path, e)
        return result

    def list_lazy(self, extension: str) -> dict[str, Loader]:
        as_component = extension == PageFormat.COMPONENT.extension
        return {
            content_key(path.name): self._make_loader(path, as_component)
            for path in self._files(extension)
        }

    @staticmethod
    def _make_loader(path: Path, as_component: bool) -> Loader:
        async def load() -> Any:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            if as_component:
                return component_module(content_key(path.name), text)
            return text

        return load


class MemorySource(ContentSource):
    """Serve files from an in-memory mapping.

    Args:
        files: ``{file name or "./name": text}``.
        components: Optional ``{file name or "./name": unit}`` giving the
            object a component loader resolves to. Component files
            without an entry resolve to a ``Component`` built from their
            text.
    """

    def __init__(
        self,
        files: dict[str, str],
        components: dict[str, Any] | None = None,
    ):
        self.files = {_normalize_key(k): v for k, v in files.items()}
        self.components = {_normalize_key(k): v for k, v in (components or {}).items()}

    def _keys(self, extension: str) -> list[str]:
        return sorted(k for k in self.files if k.endswith(f".{extension}"))

    def list_eager(self, extension: str) -> dict[str, str]:
        return {k: self.files[k] for k in self._keys(extension)}

    def list_lazy(self, extension: str) -> dict[str, Loader]:
        as_component = extension == PageFormat.COMPONENT.extension
        return {k: self._make_loader(k, as_component) for k in self._keys(extension)}

    def _make_loader(self, key: str, as_component: bool) -> Loader:
        async def load() -> Any:
            if as_component:
                if key in self.components:
                    return self.components[key]
                return component_module(key, self.files[key])
            return self.files[key]

        return load


class ZipSource(ContentSource):
    """Serve files from the top level of a zip archive (asset bundle)."""

    def __init__(self, archive: Path | str):
        self.archive = Path(archive)
        try:
            with zipfile.ZipFile(self.archive) as zf:
                self._names = sorted(
                    info.filename
                    for info in zf.infolist()
                    if not info.is_dir() and "/" not in info.filename
                )
        except (OSError, zipfile.BadZipFile) as e:
            raise PageshelfError(f"Cannot open archive {self.archive}: {e}") from e

    def __repr__(self) -> str:
        return f"ZipSource({str(self.archive)!r})"

    def _entries(self, extension: str) -> list[str]:
        return [n for n in self._names if n.endswith(f".{extension}")]

    def _read(self, name: str) -> str:
        with zipfile.ZipFile(self.archive) as zf:
            return zf.read(name).decode("utf-8")

    def list_eager(self, extension: str) -> dict[str, str]:
        result: dict[str, str] = {}
        for name in self._entries(extension):
            try:
                result[content_key(name)] = self._read(name)
            except (OSError, KeyError, UnicodeDecodeError, zipfile.BadZipFile) as e:
                logger.warning("Cannot read %s from %s: %s", name, self.archive, e)
        return result

    def list_lazy(self, extension: str) -> dict[str, Loader]:
        as_component = extension == PageFormat.COMPONENT.extension
        return {
            content_key(name): self._make_loader(name, as_component)
            for name in self._entries(extension)
        }

    def _make_loader(self, name: str, as_component: bool) -> Loader:
        async def load() -> Any:
            text = await asyncio.to_thread(self._read, name)
            if as_component:
                return component_module(content_key(name), text)
            return text

        return load


def _normalize_key(name: str) -> str:
    name = name.replace("\\", "/")
    if name.startswith("./"):
        return name
    return content_key(name.lstrip("/"))
