"""Configuration management for pageshelf.

Handles loading .pageshelf.yaml files with directory traversal,
environment variable overrides, and default values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .formats import PageshelfError

CONFIG_FILENAME = ".pageshelf.yaml"
ENV_CONTENT_DIR = "PAGESHELF_CONTENT_DIR"

DEFAULT_CONTENT_DIR = "pages"
DEFAULT_STATE_FILE = ".pageshelf-state.yaml"


@dataclass
class StateConfig:
    """Viewer state persistence settings."""

    file: str = DEFAULT_STATE_FILE
    max_age_days: int = 1  # 0 = never expires


@dataclass
class PageshelfConfig:
    """Complete pageshelf configuration."""

    content_dir: str = DEFAULT_CONTENT_DIR
    state: StateConfig = field(default_factory=StateConfig)
    config_path: Path | None = None  # Path where config was loaded from

    @property
    def base_dir(self) -> Path:
        """Directory relative paths are resolved against."""
        if self.config_path is not None:
            return self.config_path.parent
        return Path.cwd()

    @property
    def content_path(self) -> Path:
        path = Path(self.content_dir)
        return path if path.is_absolute() else self.base_dir / path

    @property
    def state_path(self) -> Path:
        path = Path(self.state.file)
        return path if path.is_absolute() else self.base_dir / path

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            PageshelfError: If configuration is invalid.
        """
        if not self.content_dir:
            raise PageshelfError("content_dir cannot be empty")

        if not self.state.file:
            raise PageshelfError("state.file cannot be empty")

        if (
            isinstance(self.state.max_age_days, bool)
            or not isinstance(self.state.max_age_days, int)
            or self.state.max_age_days < 0
        ):
            raise PageshelfError("state.max_age_days must be a non-negative integer")


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find .pageshelf.yaml by traversing up from start_path.

    Args:
        start_path: Directory to start searching from. Defaults to cwd.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    if start_path.is_file():
        start_path = start_path.parent

    current = start_path
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
    content_dir_override: str | None = None,
) -> PageshelfConfig:
    """Load configuration from file, environment, and overrides.

    Priority (highest to lowest):
    1. Function arguments (content_dir_override)
    2. Environment variable (PAGESHELF_CONTENT_DIR)
    3. Config file (.pageshelf.yaml)
    4. Defaults

    Args:
        config_path: Explicit path to config file. If None, searches.
        start_path: Directory to start config file search from.
        content_dir_override: Content directory from a CLI argument.

    Returns:
        Loaded and validated configuration.
    """
    config = PageshelfConfig()

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise PageshelfError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(start_path)

    if config_path is not None:
        config = _load_config_file(config_path)

    # Env and CLI paths are relative to where the command runs, not the config
    env_content_dir = os.environ.get(ENV_CONTENT_DIR)
    if env_content_dir:
        config.content_dir = str(Path(env_content_dir).resolve())

    if content_dir_override is not None:
        config.content_dir = str(Path(content_dir_override).resolve())

    config.validate()
    return config


def _load_config_file(config_path: Path) -> PageshelfConfig:
    """Load configuration from a YAML file.

    Raises:
        PageshelfError: If file cannot be read or parsed.
    """
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise PageshelfError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise PageshelfError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise PageshelfError(f"Config file {config_path} must contain a mapping")

    config = PageshelfConfig(config_path=config_path)

    if "content_dir" in data and data["content_dir"] is not None:
        config.content_dir = str(data["content_dir"])

    if "state" in data and isinstance(data["state"], dict):
        state_data = data["state"]
        config.state = StateConfig(
            file=str(state_data.get("file", config.state.file)),
            max_age_days=state_data.get("max_age_days", config.state.max_age_days),
        )

    return config


def create_default_config(path: Path | None = None) -> Path:
    """Create a default .pageshelf.yaml config file.

    Args:
        path: Directory to create config in. Defaults to cwd.

    Returns:
        Path to created config file.

    Raises:
        PageshelfError: If file already exists or cannot be written.
    """
    if path is None:
        path = Path.cwd()
    else:
        path = Path(path)

    config_path = path / CONFIG_FILENAME

    if config_path.exists():
        raise PageshelfError(f"Config file already exists: {config_path}")

    config_content = f'''# pageshelf configuration

# Directory holding page files (.tsx, .md, .svg, .mermaid, .txt).
# Relative paths are resolved against this file's directory.
# Can also be set with the {ENV_CONTENT_DIR} env var.
content_dir: "{DEFAULT_CONTENT_DIR}"

# Viewer state (selected page, pinned sidebar, drawer)
state:
  file: "{DEFAULT_STATE_FILE}"
  max_age_days: 1        # 0 = never expires
'''

    try:
        config_path.write_text(config_content, encoding="utf-8")
    except OSError as e:
        raise PageshelfError(f"Cannot write config file: {e}") from e

    return config_path


def config_to_dict(config: PageshelfConfig) -> dict[str, Any]:
    """Convert config to dictionary for display."""
    return {
        "content_dir": config.content_dir,
        "content_path": str(config.content_path),
        "state": {
            "file": config.state.file,
            "max_age_days": config.state.max_age_days,
        },
        "config_path": str(config.config_path) if config.config_path else None,
    }
