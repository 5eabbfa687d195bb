"""Command-line interface for pageshelf."""

import asyncio
import logging
from pathlib import Path

import click
import yaml

from . import __version__
from .config import (
    CONFIG_FILENAME,
    PageshelfConfig,
    config_to_dict,
    create_default_config,
    find_config_file,
    load_config,
)
from .formats import PageFormat, PageshelfError, parse_format
from .metadata import strip_metadata
from .registry import PageDescriptor, Registry, build_registry
from .sources import Component, DirectorySource, ZipSource
from .state import load_state, save_state, selected_page

FORMAT_CHOICES = [fmt.label for fmt in PageFormat]


def _source_options(func):
    """Shared -d/--directory and -c/--config options."""
    func = click.option(
        "-c",
        "--config",
        "config_path",
        type=click.Path(exists=True),
        help="Config file path",
    )(func)
    func = click.option(
        "-d",
        "--directory",
        "directory",
        type=click.Path(exists=True),
        help="Content directory or .zip bundle (default: from config)",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="pageshelf")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose):
    """Browse a shelf of pages: components, markdown, SVG, diagrams, text.

    pageshelf discovers page files in a directory, reads the Name and
    Description each file carries in its leading comment block, and
    serves their content on demand.

    \b
    Quick start:
      pageshelf config init          # Create .pageshelf.yaml
      pageshelf list                 # List discovered pages
      pageshelf show Intro           # Print a page without its metadata
      pageshelf state select Intro   # Remember the selected page
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("list")
@_source_options
@click.option(
    "-f",
    "--format",
    "format_label",
    type=click.Choice(FORMAT_CHOICES),
    help="Only list pages of this format",
)
def list_pages(directory, config_path, format_label):
    """List pages in registry order (sorted by id).

    \b
    Examples:
      pageshelf list
      pageshelf list -d docs/pages -f markdown
    """
    _, registry = _open_registry(directory, config_path)
    pages = list(registry)
    if format_label:
        fmt = parse_format(format_label)
        pages = [p for p in pages if p.format is fmt]

    if not pages:
        click.echo("No pages found")
        return

    id_width = max(len(p.id) for p in pages)
    fmt_width = max(len(p.format.label) for p in pages)
    for page in pages:
        line = f"{page.id:<{id_width}}  {page.format.label:<{fmt_width}}  {page.name}"
        if page.description:
            line += f" - {page.description}"
        click.echo(line)

    click.echo(f"\n{len(pages)} page(s)")


@main.command()
@click.argument("page_id")
@_source_options
@click.option(
    "-f",
    "--format",
    "format_label",
    type=click.Choice(FORMAT_CHOICES),
    help="Format of the page (needed when several formats share an id)",
)
@click.option("--raw", is_flag=True, help="Keep the metadata block")
def show(page_id, directory, config_path, format_label, raw):
    """Print the content of a page.

    The leading metadata block is removed unless --raw is given.
    Component pages print their source.

    \b
    Examples:
      pageshelf show Intro
      pageshelf show Intro -f plain-text --raw
    """
    _, registry = _open_registry(directory, config_path)
    page = _find_page(registry, page_id, format_label)

    if page.format is PageFormat.COMPONENT:
        component = asyncio.run(registry.get_component(page.id))
        if component is None:
            raise click.ClickException(f"Component unavailable: {page.key}")
        if isinstance(component, Component):
            text = component.source
            if not raw:
                text = strip_metadata(text, page.format)
        else:
            text = repr(component)
    else:
        text = asyncio.run(registry.get_content(page.id, page.format))
        if not text:
            raise click.ClickException(f"Content unavailable: {page.key}")
        if not raw:
            text = strip_metadata(text, page.format)

    click.echo(text)


@main.command()
@click.argument("page_id")
@_source_options
@click.option(
    "-f",
    "--format",
    "format_label",
    type=click.Choice(FORMAT_CHOICES),
    help="Format of the page (needed when several formats share an id)",
)
def info(page_id, directory, config_path, format_label):
    """Show the descriptor of a page.

    \b
    Examples:
      pageshelf info Chart
    """
    _, registry = _open_registry(directory, config_path)
    page = _find_page(registry, page_id, format_label)

    click.echo(f"Id:          {page.id}")
    click.echo(f"Name:        {page.name}")
    click.echo(f"Description: {page.description or '-'}")
    click.echo(f"Format:      {page.format.label}")
    click.echo(f"Extension:   {page.extension}")
    click.echo(f"Key:         {page.key}")

    others = [p for p in registry if p.id == page.id and p is not page]
    if others:
        click.echo(f"Also as:     {', '.join(p.format.label for p in others)}")


@main.group()
def state():
    """Manage the persisted viewer state."""
    pass


@state.command("show")
@_source_options
def state_show(directory, config_path):
    """Display the viewer state and the selected page."""
    cfg, registry = _open_registry(directory, config_path)
    current = load_state(cfg.state_path, cfg.state.max_age_days)
    page = selected_page(registry, current)

    click.echo(f"State file:  {_relative_path(cfg.state_path)}")
    click.echo(f"Pinned:      {'yes' if current.pinned else 'no'}")
    click.echo(f"Drawer open: {'yes' if current.drawer_open else 'no'}")
    if page is not None:
        click.echo(f"Selected:    {page.id} ({page.name})")
    elif current.selected_page_id:
        click.echo(f"Selected:    {current.selected_page_id} (not in registry)")
    else:
        click.echo("Selected:    -")


@state.command("select")
@click.argument("page_id")
@_source_options
def state_select(page_id, directory, config_path):
    """Remember PAGE_ID as the selected page."""
    cfg, registry = _open_registry(directory, config_path)
    page = _find_page(registry, page_id, None)
    save_state(cfg.state_path, cfg.state.max_age_days, selected_page_id=page.id)
    click.echo(f"Selected: {page.id}")


@state.command("pin")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
def state_pin(config_path):
    """Pin the page list sidebar."""
    cfg = _load_cli_config(None, config_path)
    save_state(cfg.state_path, cfg.state.max_age_days, pinned=True)
    click.echo("Pinned")


@state.command("unpin")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
def state_unpin(config_path):
    """Unpin the page list sidebar (it becomes a drawer)."""
    cfg = _load_cli_config(None, config_path)
    save_state(cfg.state_path, cfg.state.max_age_days, pinned=False)
    click.echo("Unpinned")


@state.command("reset")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
def state_reset(config_path):
    """Forget the stored viewer state."""
    cfg = _load_cli_config(None, config_path)
    try:
        cfg.state_path.unlink(missing_ok=True)
    except OSError as e:
        raise click.ClickException(f"Cannot remove {cfg.state_path}: {e}")
    click.echo("State reset")


@main.group()
def config():
    """Manage pageshelf configuration."""
    pass


@config.command("init")
@click.option(
    "-d",
    "--directory",
    type=click.Path(),
    default=".",
    help="Directory to create config in",
)
def config_init(directory):
    """Create a new .pageshelf.yaml configuration file."""
    try:
        config_path = create_default_config(Path(directory))
        click.echo(f"Created: {config_path}")
        click.echo("\nNext steps:")
        click.echo("  1. Point content_dir at your page files")
        click.echo("  2. Run: pageshelf list")
    except PageshelfError as e:
        raise click.ClickException(str(e))


@config.command("show")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
def config_show(config_path):
    """Display current configuration.

    Shows merged configuration from file, environment, and defaults.
    """
    cfg = _load_cli_config(None, config_path)
    data = config_to_dict(cfg)
    click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))


@config.command("where")
@click.option(
    "-d",
    "--directory",
    type=click.Path(exists=True),
    help="Directory to search from",
)
def config_where(directory):
    """Show which config file would be used.

    Searches up the directory tree for .pageshelf.yaml.
    """
    start = Path(directory) if directory else Path.cwd()
    config_path = find_config_file(start)

    if config_path:
        click.echo(f"Config file: {config_path}")
    else:
        click.echo(f"No {CONFIG_FILENAME} found (searched from {start})")


def _load_cli_config(directory: str | None, config_path: str | None) -> PageshelfConfig:
    try:
        return load_config(
            config_path=Path(config_path) if config_path else None,
            content_dir_override=directory,
        )
    except PageshelfError as e:
        raise click.ClickException(str(e))


def _open_registry(
    directory: str | None, config_path: str | None
) -> tuple[PageshelfConfig, Registry]:
    """Load config and build the registry from its content location.

    Raises:
        click.ClickException: If the content location cannot be opened.
    """
    cfg = _load_cli_config(directory, config_path)
    content_path = cfg.content_path
    try:
        if content_path.suffix.lower() == ".zip" and content_path.is_file():
            source = ZipSource(content_path)
        else:
            source = DirectorySource(content_path)
    except PageshelfError as e:
        raise click.ClickException(str(e))
    return cfg, build_registry(source)


def _find_page(
    registry: Registry, page_id: str, format_label: str | None
) -> PageDescriptor:
    fmt = parse_format(format_label) if format_label else None
    page = registry.find(page_id, fmt)
    if page is None:
        suffix = f" ({format_label})" if format_label else ""
        raise click.ClickException(f"Page not found: {page_id}{suffix}")
    return page


def _relative_path(path: Path) -> str:
    """Get a relative path for display."""
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main()
