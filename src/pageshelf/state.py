"""Persisted viewer state.

A small YAML file remembering whether the sidebar is pinned, whether the
drawer is open and which page was last selected. Pages are referenced by
id only; the registry is never modified.

State problems are never fatal: an absent, corrupt, invalid or expired
file yields the default state.
"""

import logging
import time
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable

import yaml

from .registry import PageDescriptor

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class ViewerState:
    """UI state of the viewer."""

    pinned: bool = True
    selected_page_id: str | None = None
    drawer_open: bool = False
    timestamp: float = field(default_factory=time.time)


def load_state(path: Path, max_age_days: int = 1) -> ViewerState:
    """Load viewer state from ``path``.

    Args:
        path: State file location.
        max_age_days: State older than this is discarded. 0 keeps it forever.

    Returns:
        Stored state, or defaults if it cannot be used.
    """
    path = Path(path)
    if not path.is_file():
        return ViewerState()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load viewer state from %s: %s", path, e)
        return ViewerState()

    state = _state_from_dict(data)
    if state is None:
        logger.warning("Invalid viewer state in %s, using default", path)
        return ViewerState()

    age = time.time() - state.timestamp
    if max_age_days > 0 and age > max_age_days * SECONDS_PER_DAY:
        logger.info("Viewer state in %s has expired, using default", path)
        return ViewerState()

    return state


def save_state(path: Path, max_age_days: int = 1, **changes: Any) -> ViewerState:
    """Merge ``changes`` onto the current state and write it back.

    The timestamp is always refreshed. Write failures are logged and the
    merged state is still returned.

    Raises:
        TypeError: If ``changes`` names an unknown field.
    """
    changes.pop("timestamp", None)
    state = replace(load_state(path, max_age_days), **changes, timestamp=time.time())

    try:
        Path(path).write_text(
            yaml.dump(asdict(state), default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )
    except OSError as e:
        logger.warning("Failed to save viewer state to %s: %s", path, e)

    return state


def selected_page(
    pages: Iterable[PageDescriptor], state: ViewerState
) -> PageDescriptor | None:
    """Return the page matching the stored selection, if it still exists."""
    if not state.selected_page_id:
        return None
    for page in pages:
        if page.id == state.selected_page_id:
            return page
    return None


def _state_from_dict(data: Any) -> ViewerState | None:
    if not isinstance(data, dict):
        return None

    pinned = data.get("pinned", True)
    selected = data.get("selected_page_id")
    drawer_open = data.get("drawer_open", False)
    timestamp = data.get("timestamp", 0)

    if not isinstance(pinned, bool) or not isinstance(drawer_open, bool):
        return None
    if selected is not None and not isinstance(selected, str):
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return None

    return ViewerState(
        pinned=pinned,
        selected_page_id=selected,
        drawer_open=drawer_open,
        timestamp=float(timestamp),
    )
