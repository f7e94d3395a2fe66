"""Tests for the render engine."""

from pathlib import Path
from typing import BinaryIO

import pytest

from sitepipe.observability.metrics import BuildMetrics
from sitepipe.site.assets import AssetTable
from sitepipe.site.context import BuildContext
from sitepipe.site.io import OutputWriter
from sitepipe.site.models import FileKind, Renderer
from sitepipe.site.render import RenderEngine, normalize_render_path


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    """Reset the metrics singleton before each test."""
    BuildMetrics.reset()


def make_engine(output_dir: Path) -> RenderEngine:
    """Helper to create a render engine over a fresh output directory."""
    output_dir.mkdir(parents=True, exist_ok=True)
    return RenderEngine(output_dir, OutputWriter(output_dir))


def write_text(text: str) -> Renderer:
    """Helper to build a renderer that writes fixed text."""

    def renderer(ctx: BuildContext, out: BinaryIO) -> None:
        out.write(text.encode())

    return renderer


class TestNormalizeRenderPath:
    """Tests for normalize_render_path."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("index.html", "index.html"),
            ("/index.html", "index.html"),
            ("blog/post.html", "blog/post.html"),
            ("blog//post.html", "blog/post.html"),
            ("./about.html", "about.html"),
            ("docs\\guide.html", "docs/guide.html"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        """Equivalent spellings normalize to one output-relative path."""
        assert normalize_render_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "/", ".", "../outside.html", "a/../../b"])
    def test_rejects_invalid(self, raw: str) -> None:
        """Empty paths and paths escaping the output directory are rejected."""
        with pytest.raises(ValueError, match="invalid render path"):
            normalize_render_path(raw)


class TestRenderEngine:
    """Tests for RenderEngine."""

    def test_renders_into_output(self, tmp_path: Path) -> None:
        """Renderer output lands at the registered path."""
        output_dir = tmp_path / "output"
        engine = make_engine(output_dir)

        outcome = engine.render_all(
            {"index.html": write_text("<h1>hi</h1>")}, BuildContext()
        )

        assert (output_dir / "index.html").read_text() == "<h1>hi</h1>"
        assert len(outcome.files) == 1
        assert outcome.files[0].path == "index.html"
        assert outcome.files[0].kind == FileKind.PAGE
        assert outcome.failures == []

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Missing parent directories are created."""
        output_dir = tmp_path / "output"
        engine = make_engine(output_dir)

        engine.render_all({"blog/2024/post.html": write_text("post")}, BuildContext())

        assert (output_dir / "blog" / "2024" / "post.html").read_text() == "post"

    def test_truncates_existing_file(self, tmp_path: Path) -> None:
        """A renderer replaces whatever was at its path."""
        output_dir = tmp_path / "output"
        engine = make_engine(output_dir)
        (output_dir / "robots.txt").write_text("a much longer previous body")

        engine.render_all({"robots.txt": write_text("short")}, BuildContext())

        assert (output_dir / "robots.txt").read_text() == "short"

    def test_failure_is_isolated(self, tmp_path: Path) -> None:
        """A failing renderer does not prevent the others from running."""
        output_dir = tmp_path / "output"
        engine = make_engine(output_dir)

        def broken(ctx: BuildContext, out: BinaryIO) -> None:
            out.write(b"partial")
            raise RuntimeError("template exploded")

        outcome = engine.render_all(
            {
                "a.html": write_text("a"),
                "broken.html": broken,
                "c.html": write_text("c"),
            },
            BuildContext(),
        )

        assert [f.path for f in outcome.files] == ["a.html", "c.html"]
        assert len(outcome.failures) == 1
        assert outcome.failures[0].path == "broken.html"
        assert outcome.failures[0].error_summary == "RuntimeError: template exploded"
        assert (output_dir / "c.html").read_text() == "c"
        assert (output_dir / "broken.html").read_bytes() == b"partial"

        metrics = BuildMetrics.get_instance()
        assert metrics.pages_rendered_total == 2
        assert metrics.render_failures_total == 1

    def test_unknown_asset_fails_only_that_renderer(self, tmp_path: Path) -> None:
        """Referencing an unknown asset is a renderer failure."""
        output_dir = tmp_path / "output"
        engine = make_engine(output_dir)
        table = AssetTable()
        table.add("site.css", "site.1234567.css")

        def uses_missing(ctx: BuildContext, out: BinaryIO) -> None:
            out.write(ctx.asset("missing.png").encode())

        def uses_known(ctx: BuildContext, out: BinaryIO) -> None:
            out.write(ctx.asset("site.css").encode())

        outcome = engine.render_all(
            {"bad.html": uses_missing, "good.html": uses_known},
            BuildContext().with_assets(table),
        )

        assert [f.path for f in outcome.failures] == ["bad.html"]
        assert "AssetNotFoundError" in outcome.failures[0].error_summary
        assert (output_dir / "good.html").read_text() == "/assets/site.1234567.css"

    def test_records_page_checksum(self, tmp_path: Path) -> None:
        """Rendered files are described with size and checksum."""
        output_dir = tmp_path / "output"
        engine = make_engine(output_dir)

        generated = engine.render("page.html", write_text("abc"), BuildContext())

        assert generated.bytes_written == 3
        assert len(generated.sha256) == 64
