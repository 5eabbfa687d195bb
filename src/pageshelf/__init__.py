"""pageshelf - Discover pages, read their metadata, load their content lazily."""

__version__ = "1.0.0"

from .formats import PageFormat, PageshelfError
from .metadata import PageMetadata, extract_metadata, strip_metadata
from .registry import PageDescriptor, Registry, build_registry
from .sources import (
    Component,
    ContentSource,
    DirectorySource,
    MemorySource,
    ZipSource,
)

__all__ = [
    "PageFormat",
    "PageshelfError",
    "PageMetadata",
    "extract_metadata",
    "strip_metadata",
    "PageDescriptor",
    "Registry",
    "build_registry",
    "Component",
    "ContentSource",
    "DirectorySource",
    "MemorySource",
    "ZipSource",
    "__version__",
]
