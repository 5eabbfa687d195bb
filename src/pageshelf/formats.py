"""Content formats known to pageshelf.

Each format is tied to exactly one file extension. The declaration order
of ``PageFormat`` is the order in which formats are scanned when the
registry is assembled.
"""

from enum import Enum


class PageshelfError(Exception):
    """Base exception for pageshelf errors."""

    pass


class PageFormat(Enum):
    """Closed set of page formats, valued by their file extension."""

    COMPONENT = "tsx"
    MARKDOWN = "md"
    VECTOR_IMAGE = "svg"
    DIAGRAM = "mermaid"
    PLAIN_TEXT = "txt"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Short lowercase label used on the command line."""
        return self.name.lower().replace("_", "-")


# Construction order for registry assembly
FORMAT_ORDER: tuple[PageFormat, ...] = tuple(PageFormat)

_BY_EXTENSION = {fmt.extension: fmt for fmt in PageFormat}
_BY_LABEL = {fmt.label: fmt for fmt in PageFormat}


def format_for_extension(extension: str) -> PageFormat:
    """Classify a file extension.

    Unknown extensions fall back to plain text rather than failing.
    """
    return _BY_EXTENSION.get(extension, PageFormat.PLAIN_TEXT)


def parse_format(value: "str | PageFormat") -> PageFormat:
    """Resolve a format from a member, a label or an extension.

    Args:
        value: ``PageFormat`` member, label (``"markdown"``) or
            extension (``"md"``).

    Returns:
        The matching PageFormat.

    Raises:
        PageshelfError: If the value names no known format.
    """
    if isinstance(value, PageFormat):
        return value
    key = str(value).lower().lstrip(".")
    if key in _BY_LABEL:
        return _BY_LABEL[key]
    if key in _BY_EXTENSION:
        return _BY_EXTENSION[key]
    raise PageshelfError(
        f"Unknown format: {value!r}. "
        f"Must be one of: {', '.join(sorted(_BY_LABEL))}"
    )
