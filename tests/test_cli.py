"""Tests for pageshelf.cli module."""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from pageshelf.cli import main
from pageshelf.config import CONFIG_FILENAME, ENV_CONTENT_DIR


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_CONTENT_DIR, raising=False)


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


def _write_pages(directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "Intro.md").write_text(
        "<!--\nName: Welcome\nDescription: Start here\n-->\n\n# Hello", encoding="utf-8"
    )
    (directory / "Intro.txt").write_text("# Name: Intro notes\nplain", encoding="utf-8")
    (directory / "Chart.mermaid").write_text(
        '%%{"Name": "Flow"}%%\ngraph TD; A-->B', encoding="utf-8"
    )
    (directory / "Card.tsx").write_text(
        "/* Name: Card */\nexport default function Card() {}", encoding="utf-8"
    )
    (directory / "MyDiagram.mermaid").write_text("graph LR", encoding="utf-8")
    (directory / "_hidden.md").write_text("<!-- Name: Hidden -->", encoding="utf-8")


@pytest.fixture
def pages_dir(tmp_path):
    pages = tmp_path / "pages"
    _write_pages(pages)
    return pages


class TestList:
    """Tests for list command."""

    def test_lists_sorted_pages(self, runner, pages_dir):
        result = runner.invoke(main, ["list", "-d", str(pages_dir)])

        assert result.exit_code == 0
        lines = [line.split()[0] for line in result.output.splitlines()[:5]]
        assert lines == ["Card", "Chart", "Intro", "Intro", "MyDiagram"]
        assert "Welcome - Start here" in result.output
        assert "My Diagram" in result.output
        assert "_hidden" not in result.output
        assert "5 page(s)" in result.output

    def test_format_filter(self, runner, pages_dir):
        result = runner.invoke(main, ["list", "-d", str(pages_dir), "-f", "diagram"])

        assert result.exit_code == 0
        assert "Chart" in result.output
        assert "Intro" not in result.output
        assert "2 page(s)" in result.output

    def test_empty_directory(self, runner, tmp_path):
        result = runner.invoke(main, ["list", "-d", str(tmp_path)])
        assert result.exit_code == 0
        assert "No pages found" in result.output

    def test_uses_config_content_dir(self, runner, tmp_path):
        """Without -d, the content directory comes from the config file."""
        _write_pages(tmp_path / "docs")
        (tmp_path / CONFIG_FILENAME).write_text('content_dir: "docs"\n')

        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(
                main, ["list", "-c", str(tmp_path / CONFIG_FILENAME)]
            )

        assert result.exit_code == 0
        assert "Welcome" in result.output

    def test_missing_content_dir(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["list"])

        assert result.exit_code != 0
        assert "Content directory not found" in result.output

    def test_zip_bundle(self, runner, tmp_path):
        import zipfile

        bundle = tmp_path / "bundle.zip"
        with zipfile.ZipFile(bundle, "w") as zf:
            zf.writestr("Guide.md", "<!-- Name: The Guide -->\nRead me")

        result = runner.invoke(main, ["list", "-d", str(bundle)])
        assert result.exit_code == 0
        assert "The Guide" in result.output


class TestShow:
    """Tests for show command."""

    def test_strips_metadata(self, runner, pages_dir):
        result = runner.invoke(main, ["show", "Chart", "-d", str(pages_dir)])

        assert result.exit_code == 0
        assert result.output.strip() == "graph TD; A-->B"

    def test_raw(self, runner, pages_dir):
        result = runner.invoke(main, ["show", "Chart", "-d", str(pages_dir), "--raw"])

        assert result.exit_code == 0
        assert result.output.startswith('%%{"Name": "Flow"}%%')

    def test_shared_id_needs_format(self, runner, pages_dir):
        """Without --format the first page in registry order is shown."""
        md = runner.invoke(main, ["show", "Intro", "-d", str(pages_dir)])
        txt = runner.invoke(
            main, ["show", "Intro", "-d", str(pages_dir), "-f", "plain-text"]
        )

        assert md.output.strip() == "# Hello"
        assert txt.output.strip() == "plain"

    def test_component_source(self, runner, pages_dir):
        result = runner.invoke(main, ["show", "Card", "-d", str(pages_dir)])

        assert result.exit_code == 0
        assert result.output.strip() == "export default function Card() {}"

    def test_unknown_page(self, runner, pages_dir):
        result = runner.invoke(main, ["show", "Nope", "-d", str(pages_dir)])

        assert result.exit_code != 0
        assert "Page not found: Nope" in result.output

    def test_excluded_page_not_shown(self, runner, pages_dir):
        result = runner.invoke(main, ["show", "_hidden", "-d", str(pages_dir)])
        assert result.exit_code != 0


class TestInfo:
    """Tests for info command."""

    def test_descriptor(self, runner, pages_dir):
        result = runner.invoke(main, ["info", "Intro", "-d", str(pages_dir)])

        assert result.exit_code == 0
        assert "Name:        Welcome" in result.output
        assert "Description: Start here" in result.output
        assert "Format:      markdown" in result.output
        assert "Key:         ./Intro.md" in result.output
        assert "Also as:     plain-text" in result.output

    def test_default_name(self, runner, pages_dir):
        result = runner.invoke(main, ["info", "MyDiagram", "-d", str(pages_dir)])

        assert "Name:        My Diagram" in result.output
        assert "Description: -" in result.output


class TestState:
    """Tests for state commands."""

    def test_select_and_show(self, runner, pages_dir, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            selected = runner.invoke(main, ["state", "select", "Intro", "-d", str(pages_dir)])
            shown = runner.invoke(main, ["state", "show", "-d", str(pages_dir)])

            stored = yaml.safe_load(Path(".pageshelf-state.yaml").read_text())

        assert selected.exit_code == 0
        assert "Selected: Intro" in selected.output
        assert "Selected:    Intro (Welcome)" in shown.output
        assert stored["selected_page_id"] == "Intro"

    def test_select_unknown_page(self, runner, pages_dir, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["state", "select", "Nope", "-d", str(pages_dir)])
            assert not Path(".pageshelf-state.yaml").exists()

        assert result.exit_code != 0

    def test_pin_unpin_reset(self, runner, pages_dir, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            runner.invoke(main, ["state", "unpin"])
            unpinned = runner.invoke(main, ["state", "show", "-d", str(pages_dir)])
            runner.invoke(main, ["state", "pin"])
            pinned = runner.invoke(main, ["state", "show", "-d", str(pages_dir)])
            reset = runner.invoke(main, ["state", "reset"])
            exists = Path(".pageshelf-state.yaml").exists()

        assert "Pinned:      no" in unpinned.output
        assert "Pinned:      yes" in pinned.output
        assert reset.exit_code == 0
        assert not exists

    def test_selection_of_removed_page(self, runner, pages_dir, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            runner.invoke(main, ["state", "select", "Chart", "-d", str(pages_dir)])
            (pages_dir / "Chart.mermaid").unlink()
            shown = runner.invoke(main, ["state", "show", "-d", str(pages_dir)])

        assert "Chart (not in registry)" in shown.output


class TestConfigCommands:
    """Tests for config commands."""

    def test_init_creates_file(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["config", "init"])

            assert result.exit_code == 0
            assert "Created:" in result.output
            assert Path(CONFIG_FILENAME).exists()

    def test_init_twice_fails(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            runner.invoke(main, ["config", "init"])
            result = runner.invoke(main, ["config", "init"])

        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_show(self, runner, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("content_dir: docs\n")

        result = runner.invoke(main, ["config", "show", "-c", str(config_path)])

        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["content_dir"] == "docs"
        assert data["config_path"] == str(config_path)

    def test_where(self, runner, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("content_dir: docs\n")
        sub = tmp_path / "sub"
        sub.mkdir()

        result = runner.invoke(main, ["config", "where", "-d", str(sub)])

        assert result.exit_code == 0
        assert str(tmp_path / CONFIG_FILENAME) in result.output


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "pageshelf" in result.output
