"""Metadata block extraction and stripping.

Every page format has its own comment convention for carrying a
``Name`` and a ``Description``. The block must sit at the very start of
the file; only the first block is considered.

    Markdown / SVG:   <!-- Name: Intro  Description: ... -->
    Component:        /* Name: Card  Description: ... */
    Diagram:          %%{ "Name": "Flow", "Description": "..." }%%
    Plain text:       # Name: Notes
                      # Description: ...

The grammars live in ``METADATA_RULES`` so that a new format only needs
a new table entry.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable

from .formats import PageFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageMetadata:
    """Fields found in a metadata block. ``None`` means not supplied."""

    name: str | None = None
    description: str | None = None


class MalformedMetadata(ValueError):
    """A metadata block was found but its body could not be parsed."""


@dataclass(frozen=True)
class MetadataRule:
    """Grammar for one format.

    Attributes:
        block: Pattern anchored at the start of the text. Group 1 is the
            body handed to ``parse``; the whole match is what stripping
            removes.
        parse: Turns the body into PageMetadata. Raises MalformedMetadata
            when the body cannot be understood.
    """

    block: re.Pattern[str]
    parse: Callable[[str], PageMetadata]


_NAME_LABEL_RE = re.compile(r"Name\s*:\s*(.+)", re.IGNORECASE)
_DESCRIPTION_LABEL_RE = re.compile(r"Description\s*:\s*(.+)", re.IGNORECASE)
_NAME_LINE_RE = re.compile(r"^#\s*Name\s*:\s*(.+)", re.IGNORECASE | re.MULTILINE)
_DESCRIPTION_LINE_RE = re.compile(
    r"^#\s*Description\s*:\s*(.+)", re.IGNORECASE | re.MULTILINE
)


def _clean(value: object) -> str | None:
    # JSON objects, arrays, booleans and null are not titles
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    value = str(value).strip()
    return value or None


def _first_group(pattern: re.Pattern[str], body: str) -> str | None:
    match = pattern.search(body)
    return _clean(match.group(1)) if match else None


def _parse_labels(body: str) -> PageMetadata:
    return PageMetadata(
        name=_first_group(_NAME_LABEL_RE, body),
        description=_first_group(_DESCRIPTION_LABEL_RE, body),
    )


def _parse_hash_lines(body: str) -> PageMetadata:
    return PageMetadata(
        name=_first_group(_NAME_LINE_RE, body),
        description=_first_group(_DESCRIPTION_LINE_RE, body),
    )


def _parse_json_fragment(body: str) -> PageMetadata:
    try:
        data = json.loads("{" + body + "}")
    except (ValueError, RecursionError) as e:
        # ValueError also covers integer strings over the digit limit
        raise MalformedMetadata(str(e) or type(e).__name__) from e
    if not isinstance(data, dict):
        raise MalformedMetadata("metadata block is not a JSON object")
    return PageMetadata(
        name=_clean(data.get("Name")),
        description=_clean(data.get("Description")),
    )


_HTML_COMMENT = MetadataRule(
    block=re.compile(r"\A<!--\s*([\s\S]*?)\s*-->"),
    parse=_parse_labels,
)

METADATA_RULES: dict[PageFormat, MetadataRule] = {
    PageFormat.COMPONENT: MetadataRule(
        block=re.compile(r"\A/\*\s*([\s\S]*?)\s*\*/"),
        parse=_parse_labels,
    ),
    PageFormat.MARKDOWN: _HTML_COMMENT,
    PageFormat.VECTOR_IMAGE: _HTML_COMMENT,
    PageFormat.DIAGRAM: MetadataRule(
        block=re.compile(r"\A%%\s*\{\s*([\s\S]*?)\s*\}\s*%%"),
        parse=_parse_json_fragment,
    ),
    PageFormat.PLAIN_TEXT: MetadataRule(
        block=re.compile(r"\A((?:#[^\n]*(?:\n|\Z))+)"),
        parse=_parse_hash_lines,
    ),
}


def extract_metadata(text: str, fmt: PageFormat) -> PageMetadata:
    """Read the leading metadata block of ``text``.

    A missing block is not an error: both fields come back as None.
    A block whose body is malformed is logged and treated as missing.
    Plain-text fields are read from the leading ``#`` lines only, so a file
    that starts with a blank line carries no metadata.

    Args:
        text: Full raw file content.
        fmt: Format deciding which grammar applies.

    Returns:
        PageMetadata with whatever fields were supplied.
    """
    rule = METADATA_RULES[fmt]
    match = rule.block.match(text)
    if match is None:
        return PageMetadata()

    try:
        return rule.parse(match.group(1))
    except MalformedMetadata as e:
        logger.warning("Failed to parse %s metadata block: %s", fmt.label, e)
        return PageMetadata()


def strip_metadata(text: str, fmt: PageFormat) -> str:
    """Remove the leading metadata block and trim surrounding whitespace.

    Text without a leading block passes through (trimmed). A diagram
    block whose JSON does not parse is left in place, since it is not
    recognisable as metadata.
    """
    rule = METADATA_RULES[fmt]
    match = rule.block.match(text)
    if match is None:
        return text.strip()

    try:
        rule.parse(match.group(1))
    except MalformedMetadata:
        logger.debug("Keeping unparsable %s block in content", fmt.label)
        return text.strip()

    return text[match.end() :].strip()
