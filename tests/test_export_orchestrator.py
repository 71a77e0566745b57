"""
Tests for the export orchestrator and its sinks.

Tests cover:
- Encoding every size of the selected tables
- ZIP and directory sinks
- Per-size failures and partial exports
- Rejecting missing and tainted sources up front
- ExportOptions serialization
"""

import io
import zipfile

import pytest
from PIL import Image

from IS_Libs.errors import CrossOriginError, EncodeError, PartialExportFailure, SourceUnavailableError
from IS_Libs.ExportLib import export_orchestrator
from IS_Libs.ExportLib.export_orchestrator import (
    ExportOptions,
    encode_png,
    export_icons,
    iter_export,
    render_export_size,
)
from IS_Libs.ExportLib.export_sinks import DirectorySink, ZipArchiveSink
from IS_Libs.ExportLib.size_tables import ANDROID_DENSITIES, SizeTable, SizeTableEntry
from IS_Libs.ImageEditingLib.compositor import render_icon
from IS_Libs.ImageEditingLib.image_models import SourceImage
from IS_Libs.ImageEditingLib.transform_model import TransformModel

ANDROID_PATHS = [
    "android/res/drawable-mdpi/ic_launcher.png",
    "android/res/drawable-hdpi/ic_launcher.png",
    "android/res/drawable-xhdpi/ic_launcher.png",
    "android/res/drawable-xxhdpi/ic_launcher.png",
    "android/res/drawable-xxxhdpi/ic_launcher.png",
]


def _png_size(data):
    with Image.open(io.BytesIO(data)) as img:
        return img.size


class FlakySink:
    """Sink that refuses one path."""

    def __init__(self, bad_path):
        self.bad_path = bad_path
        self.received = []

    def add(self, path, data):
        if path == self.bad_path:
            raise OSError("disk full")
        self.received.append(path)


class TestExportIcons:
    """Tests for export_icons function."""

    def test_android_zip(self, red_source, default_model):
        archive = ZipArchiveSink()
        report = export_icons(red_source, default_model, sinks=[archive])

        assert report.succeeded
        assert report.total == 5
        assert archive.names == ANDROID_PATHS

        with zipfile.ZipFile(io.BytesIO(archive.finish())) as zf:
            assert zf.namelist() == ANDROID_PATHS
            sizes = [_png_size(zf.read(name)) for name in ANDROID_PATHS]
        assert sizes == [(48, 48), (72, 72), (96, 96), (144, 144), (192, 192)]

    def test_artifacts_carry_names(self, red_source, default_model):
        report = export_icons(red_source, default_model)
        first = report.artifacts[0]

        assert first.platform == "android"
        assert first.name == "mdpi"
        assert first.pixel_size == 48
        assert first.download_name == "ic_launcher_mdpi.png"
        assert first.data.startswith(b"\x89PNG")

    def test_multiple_platforms(self, red_source, default_model):
        options = ExportOptions(platforms=["android", "android-store", "ios"])
        report = export_icons(red_source, default_model, options)

        assert report.total == 5 + 1 + 15
        assert {a.platform for a in report.artifacts} == {"android", "android-store", "ios"}

    def test_explicit_tables(self, red_source, default_model):
        table = SizeTable("web", (SizeTableEntry("favicon", 16),), path_template="{name}.png")
        report = export_icons(red_source, default_model, tables=[table])

        assert [a.path for a in report.artifacts] == ["web/favicon.png"]

    def test_progress_callback(self, red_source, default_model):
        seen = []
        export_icons(red_source, default_model, progress=lambda step: seen.append((step.index, step.total, step.ok)))
        assert seen == [(i, 5, True) for i in range(1, 6)]

    def test_render_failure_is_partial(self, red_source, default_model, monkeypatch):
        def failing_render(source, model, target_size, *args, **kwargs):
            if target_size == 72:
                raise MemoryError("canvas too large")
            return render_icon(source, model, target_size, *args, **kwargs)

        monkeypatch.setattr(export_orchestrator, "render_icon", failing_render)
        archive = ZipArchiveSink()
        report = export_icons(red_source, default_model, sinks=[archive])

        assert report.partial
        assert len(report.artifacts) == 4
        assert [(f.name, f.pixel_size) for f in report.failures] == [("hdpi", 72)]
        assert isinstance(report.failures[0].error, MemoryError)
        assert "android/res/drawable-hdpi/ic_launcher.png" not in archive.names

        with pytest.raises(PartialExportFailure) as exc_info:
            report.raise_for_failures()
        assert exc_info.value.report is report
        assert "1 of 5" in str(exc_info.value)

    def test_sink_failure_is_recorded(self, red_source, default_model):
        sink = FlakySink(ANDROID_PATHS[-1])
        report = export_icons(red_source, default_model, sinks=[sink])

        assert sink.received == ANDROID_PATHS[:-1]
        assert [f.name for f in report.failures] == ["xxxhdpi"]
        assert isinstance(report.failures[0].error, OSError)

    def test_all_failed_is_not_partial(self, red_source, default_model, monkeypatch):
        def broken(*args, **kwargs):
            raise EncodeError("no encoder")

        monkeypatch.setattr(export_orchestrator, "encode_png", broken)
        report = export_icons(red_source, default_model)

        assert not report.succeeded
        assert not report.partial
        assert len(report.failures) == 5

    def test_degenerate_geometry_exports(self, red_source):
        model = TransformModel(padding=256, border_width=256)
        report = export_icons(red_source, model)

        assert report.succeeded
        assert len(report.artifacts) == 5

    def test_cancel_stops_after_current_size(self, red_source, default_model):
        archive = ZipArchiveSink()
        seen = []

        report = export_icons(
            red_source,
            default_model,
            sinks=[archive],
            progress=seen.append,
            should_cancel=lambda: len(seen) == 2,
        )

        assert report.cancelled
        assert not report.succeeded
        assert not report.partial
        assert len(report.artifacts) == 2
        assert archive.names == ANDROID_PATHS[:2]

    def test_unknown_platform(self, red_source, default_model):
        with pytest.raises(KeyError):
            export_icons(red_source, default_model, ExportOptions(platforms=["windows"]))


class TestSourceChecks:
    """Exports are rejected before any rendering."""

    def test_missing_source(self, default_model):
        with pytest.raises(SourceUnavailableError):
            iter_export(None, default_model)

    def test_tainted_source(self, default_model):
        source = SourceImage.from_image(Image.new("RGBA", (32, 32)), origin="https://other.test/x.png", tainted=True)
        archive = ZipArchiveSink()

        with pytest.raises(CrossOriginError):
            export_icons(source, default_model, sinks=[archive])
        assert archive.names == []

    def test_iter_export_is_lazy(self, red_source, default_model, monkeypatch):
        calls = []
        monkeypatch.setattr(
            export_orchestrator,
            "render_export_size",
            lambda *args, **kwargs: calls.append(args[2]) or b"png",
        )

        steps = iter_export(red_source, default_model)
        assert calls == []

        first = next(steps)
        assert first.artifact.pixel_size == 48
        assert calls == [48]


class TestSharpen:
    """Tests for the export-time sharpen option."""

    def test_sharpen_changes_edges(self, red_source, default_model):
        plain = render_export_size(red_source, default_model, 96, ExportOptions())
        sharp = render_export_size(red_source, default_model, 96, ExportOptions(sharpen=True))
        assert plain != sharp

    def test_sharpen_keeps_flat_colour(self, default_model):
        source = SourceImage.from_image(Image.new("RGBA", (512, 512), (90, 90, 90, 255)))
        data = render_export_size(source, default_model, 48, ExportOptions(sharpen=True))

        with Image.open(io.BytesIO(data)) as img:
            assert img.getpixel((24, 24)) == (90, 90, 90, 255)


class TestExportOptions:
    """Tests for ExportOptions dataclass."""

    def test_defaults(self):
        options = ExportOptions()

        assert options.platforms == ["android"]
        assert not options.sharpen
        assert options.sharpen_border_mode == "replicate"
        assert options.archive_name == "android_icons.zip"

    def test_round_trip(self):
        options = ExportOptions(platforms=["ios"], sharpen=True, sharpen_border_mode="zero")
        assert ExportOptions.from_dict(options.to_dict()) == options

    def test_from_dict_tolerates_legacy_values(self):
        options = ExportOptions.from_dict({"platforms": "ios", "unknown": True})
        assert options.platforms == ["ios"]

    def test_invalid_border_mode(self):
        with pytest.raises(ValueError):
            ExportOptions(sharpen_border_mode="mirror")

    def test_size_tables(self):
        assert ExportOptions().size_tables() == [ANDROID_DENSITIES]


class TestEncodePng:
    """Tests for encode_png function."""

    def test_encodes_rgba(self):
        data = encode_png(Image.new("RGBA", (8, 8), (1, 2, 3, 4)))
        assert _png_size(data) == (8, 8)

    def test_unencodable_image(self):
        with pytest.raises(EncodeError):
            encode_png(Image.new("CMYK", (8, 8)))


class TestZipArchiveSink:
    """Tests for ZipArchiveSink class."""

    def test_finish_is_idempotent(self):
        sink = ZipArchiveSink()
        sink.add("a.png", b"1")
        assert sink.finish() is sink.finish()

    def test_add_after_finish(self):
        sink = ZipArchiveSink()
        sink.finish()
        with pytest.raises(RuntimeError):
            sink.add("a.png", b"1")

    @pytest.mark.parametrize("path", ["../evil.png", "/etc/evil.png"])
    def test_rejects_unsafe_paths(self, path):
        with pytest.raises(ValueError):
            ZipArchiveSink().add(path, b"1")

    def test_write_to(self, temp_project_dir):
        sink = ZipArchiveSink("icons.zip")
        sink.add("a.png", b"1")

        saved = sink.write_to(temp_project_dir)
        assert saved == temp_project_dir / "icons.zip"
        assert zipfile.is_zipfile(saved)

        with pytest.raises(ValueError):
            sink.write_to(temp_project_dir)
        assert sink.write_to(temp_project_dir, overwrite=True) == saved


class TestDirectorySink:
    """Tests for DirectorySink class."""

    def test_writes_nested_files(self, temp_project_dir, red_source, default_model):
        sink = DirectorySink(temp_project_dir / "out")
        export_icons(red_source, default_model, sinks=[sink])

        for path in ANDROID_PATHS:
            assert (temp_project_dir / "out" / path).is_file()
        assert len(sink.finish()) == 5

    def test_overwrite_protection(self, temp_project_dir):
        sink = DirectorySink(temp_project_dir)
        sink.add("icon.png", b"first")

        with pytest.raises(ValueError):
            sink.add("icon.png", b"second")
        assert (temp_project_dir / "icon.png").read_bytes() == b"first"

        DirectorySink(temp_project_dir, overwrite=True).add("icon.png", b"second")
        assert (temp_project_dir / "icon.png").read_bytes() == b"second"

    @pytest.mark.parametrize("path", ["../../outside.png", "a/../../outside.png", "/tmp/outside.png"])
    def test_path_traversal(self, temp_project_dir, path):
        sink = DirectorySink(temp_project_dir / "base")
        with pytest.raises(ValueError):
            sink.add(path, b"x")

    def test_symlink_escape(self, temp_project_dir):
        base = temp_project_dir / "base"
        base.mkdir()
        outside = temp_project_dir / "outside"
        outside.mkdir()
        (base / "link").symlink_to(outside)

        with pytest.raises(ValueError, match="Security"):
            DirectorySink(base).add("link/icon.png", b"x")
