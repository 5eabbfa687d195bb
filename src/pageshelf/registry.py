"""Page registry: descriptor assembly and lazy content access.

The registry is built once from a ContentSource. Building reads only the
eager (raw text) maps to extract metadata; content and components are
fetched later, on demand, through the lazy maps.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator

from .formats import (
    FORMAT_ORDER,
    PageFormat,
    PageshelfError,
    format_for_extension,
    parse_format,
)
from .metadata import extract_metadata, strip_metadata
from .sources import ContentSource, Loader

logger = logging.getLogger(__name__)

_UPPERCASE_RE = re.compile(r"([A-Z])")


@dataclass(frozen=True)
class PageDescriptor:
    """Metadata record for one discoverable content file.

    ``id`` is unique within a format only: ``Intro.md`` and ``Intro.txt``
    both yield ``id="Intro"``.
    """

    id: str
    name: str
    description: str | None
    format: PageFormat
    extension: str

    @property
    def key(self) -> str:
        """Request identifier used by the lazy accessors."""
        return f"./{self.id}.{self.format.extension}"


def split_path(path: str) -> tuple[str, str]:
    """Split ``relative/Name.ext`` into ``("Name", "ext")``.

    A path without a dot has an empty extension.
    """
    filename = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in filename:
        return filename, ""
    base, extension = filename.rsplit(".", 1)
    return base, extension


def default_name(base_name: str) -> str:
    """Insert a space before every uppercase letter: MyDiagram -> My Diagram."""
    return _UPPERCASE_RE.sub(r" \1", base_name).strip()


def should_exclude(path: str) -> bool:
    """Private and infrastructure files never become pages.

    Excluded: base names starting with ``_`` and any path containing
    ``index.``.
    """
    base_name, _ = split_path(path)
    return base_name.startswith("_") or "index." in path


def create_descriptor(path: str, raw_text: str) -> PageDescriptor:
    """Build a PageDescriptor from a file path and its raw text."""
    base_name, extension = split_path(path)
    fmt = format_for_extension(extension)
    metadata = extract_metadata(raw_text, fmt)

    return PageDescriptor(
        id=base_name,
        name=metadata.name or default_name(base_name),
        description=metadata.description,
        format=fmt,
        extension=extension,
    )


class Registry:
    """Immutable, id-sorted list of pages plus lazy accessors.

    Use ``build_registry()`` to construct one.
    """

    def __init__(
        self,
        pages: tuple[PageDescriptor, ...],
        loaders: dict[PageFormat, dict[str, Loader]],
    ):
        self._pages = pages
        self._loaders = loaders

    @property
    def pages(self) -> tuple[PageDescriptor, ...]:
        return self._pages

    def __iter__(self) -> Iterator[PageDescriptor]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __repr__(self) -> str:
        return f"Registry({len(self._pages)} pages)"

    def find(
        self, page_id: str, fmt: PageFormat | None = None
    ) -> PageDescriptor | None:
        """Return the first page with ``page_id`` (and ``fmt`` if given)."""
        for page in self._pages:
            if page.id == page_id and (fmt is None or page.format is fmt):
                return page
        return None

    async def get_content(self, page_id: str, fmt: PageFormat | str) -> str:
        """Fetch the raw text of a page.

        Never raises. An empty string means the content is unavailable:
        no loader was registered, the loader failed, or ``fmt`` is the
        component format (components go through ``get_component``).
        ``fmt`` may also be a format label or extension such as ``"md"``.
        """
        try:
            fmt = parse_format(fmt)
        except PageshelfError as e:
            logger.error("Unsupported content type for %s: %s", page_id, e)
            return ""

        path = f"./{page_id}.{fmt.extension}"
        if fmt is PageFormat.COMPONENT:
            logger.error("Unsupported content type for %s: %s", path, fmt.label)
            return ""

        loader = self._loaders.get(fmt, {}).get(path)
        if loader is None:
            logger.error("Content not found: %s", path)
            return ""

        try:
            content = await _invoke(loader)
        except Exception as e:
            logger.error("Failed to load content: %s (%s)", page_id, e)
            return ""

        if isinstance(content, bytes):
            try:
                return content.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.error("Failed to decode content: %s (%s)", page_id, e)
                return ""
        if content is None:
            return ""
        return str(content)

    async def get_component(self, page_id: str) -> Any | None:
        """Fetch a component page's primary export, or None."""
        path = f"./{page_id}.{PageFormat.COMPONENT.extension}"
        loader = self._loaders.get(PageFormat.COMPONENT, {}).get(path)
        if loader is None:
            logger.error("Module not found: %s", path)
            return None

        try:
            module = await _invoke(loader)
        except Exception as e:
            logger.error("Failed to load component: %s (%s)", page_id, e)
            return None

        export = _primary_export(module)
        if export is None:
            logger.error("Component has no default export: %s", path)
        return export

    async def load_page(self, page: PageDescriptor) -> str:
        """Fetch a text page and strip its metadata block."""
        raw = await self.get_content(page.id, page.format)
        return strip_metadata(raw, page.format)


def build_registry(source: ContentSource) -> Registry:
    """Assemble the page registry from a content source.

    Formats are scanned in FORMAT_ORDER, each format's files filtered by
    ``should_exclude``. The combined list is then stable-sorted by id
    with ordinal comparison, so equal ids keep scan order.

    Args:
        source: Provider of eager and lazy file maps.

    Returns:
        Registry ready for use by the presentation layer.
    """
    pages: list[PageDescriptor] = []
    loaders: dict[PageFormat, dict[str, Loader]] = {}

    for fmt in FORMAT_ORDER:
        raw_files = source.list_eager(fmt.extension)
        for path in sorted(raw_files):
            if should_exclude(path):
                logger.debug("Excluding %s", path)
                continue
            pages.append(create_descriptor(path, raw_files[path]))
        loaders[fmt] = dict(source.list_lazy(fmt.extension))

    pages.sort(key=lambda p: p.id)
    logger.debug("Built registry with %d pages from %r", len(pages), source)
    return Registry(tuple(pages), loaders)


async def _invoke(loader: Loader) -> Any:
    result = loader()
    if inspect.isawaitable(result):
        result = await result
    return result


def _primary_export(module: Any) -> Any | None:
    if isinstance(module, Mapping):
        return module.get("default")
    return getattr(module, "default", None)
