"""
Tests for EditorSession.

Tests cover:
- Loading sources and the first history commit
- Failed loads leaving the session untouched
- Preview versus committed changes
- Undo/redo across source changes
- Reset to per-image defaults
- Export outcomes on the status board
"""

import base64
import io
import zipfile

import pytest
from PIL import Image

from IS_Libs.errors import CrossOriginError, DecodeError, SourceUnavailableError
from IS_Libs.ExportLib import export_orchestrator
from IS_Libs.ExportLib.export_orchestrator import ExportOptions
from IS_Libs.ExportLib.export_sinks import ZipArchiveSink
from IS_Libs.ImageEditingLib.compositor import render_icon
from IS_Libs.ImageEditingLib.image_models import SourceImage
from IS_Libs.SessionLib.editor_session import EditorSession
from IS_Libs.SessionLib.status_messages import StatusBoard


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def session():
    return EditorSession(status=StatusBoard(clock=FakeClock()))


@pytest.fixture
def loaded_session(session, red_source):
    session.load_source(red_source)
    return session


class TestLoading:
    """Tests for loading sources."""

    def test_initial_state(self, session):
        assert not session.image_loaded
        assert len(session.history) == 0
        assert session.render_preview().size == (512, 512)

    def test_load_commits_defaults(self, session, large_source):
        session.load_source(large_source)

        assert session.image_loaded
        assert session.model.scale == pytest.approx(0.5)
        assert session.defaults == session.model
        assert len(session.history) == 1
        assert session.status.latest().kind == "success"

    def test_load_bytes(self, session, png_bytes):
        source = session.load_bytes(png_bytes, origin="upload.png")

        assert session.source is source
        assert source.origin == "upload.png"

    def test_failed_decode_keeps_state(self, loaded_session, red_source):
        model_before = loaded_session.update(rotation=10).model

        with pytest.raises(DecodeError):
            loaded_session.load_bytes(b"not an image")

        assert loaded_session.source is red_source
        assert loaded_session.model == model_before
        assert len(loaded_session.history) == 2
        assert loaded_session.status.latest().kind == "error"

    def test_load_missing_path(self, session, temp_project_dir):
        with pytest.raises(SourceUnavailableError):
            session.load_path(temp_project_dir / "missing.png")
        assert not session.image_loaded

    def test_load_reference_data_url(self, session):
        buffer = io.BytesIO()
        Image.new("RGB", (3, 5), "blue").save(buffer, format="PNG")
        url = "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")

        source = session.load_reference(url)
        assert source.size == (3, 5)


class TestEditing:
    """Tests for preview and committed edits."""

    def test_preview_change_does_not_commit(self, loaded_session):
        preview = loaded_session.preview_change({"rotation": 20})

        assert preview.size == (512, 512)
        assert loaded_session.model.rotation == 20
        assert len(loaded_session.history) == 1

    def test_commit_change(self, loaded_session):
        entry = loaded_session.commit_change({"rotation": 20, "icon_shape": "circle"})

        assert entry.model.icon_shape == "circle"
        assert len(loaded_session.history) == 2

    def test_invalid_change_is_rejected(self, loaded_session):
        with pytest.raises(ValueError):
            loaded_session.update(padding=-5)

        assert loaded_session.model.padding == 0
        assert len(loaded_session.history) == 1

    def test_update_text_fields(self, loaded_session):
        loaded_session.update(text_content="Hi", text_font_color="#00ff00")
        assert loaded_session.model.text.content == "Hi"
        assert loaded_session.model.text.font_color == (0, 255, 0)

    def test_reset(self, loaded_session):
        loaded_session.update(rotation=45, padding=10)
        loaded_session.reset()

        assert loaded_session.model == loaded_session.defaults
        assert len(loaded_session.history) == 3
        assert loaded_session.status.latest().text == "Settings reset"

    def test_reset_clearing_history(self, loaded_session):
        loaded_session.update(rotation=45)
        loaded_session.reset(clear_history=True)

        assert len(loaded_session.history) == 1
        assert not loaded_session.undo()

    def test_reset_field(self, large_source, session):
        session.load_source(large_source)
        session.update(scale=1.5, rotation=90, text_content="X", text_font_size=10)

        session.reset_field("scale")
        assert session.model.scale == pytest.approx(0.5)
        assert session.model.rotation == 90

        session.reset_field("text_font_size")
        assert session.model.text.font_size == session.defaults.text.font_size
        assert session.model.text.content == "X"

        session.reset_field("text")
        assert not session.model.text.enabled

    @pytest.mark.parametrize("name", ["opacity", "text_shadow"])
    def test_reset_unknown_field(self, loaded_session, name):
        with pytest.raises(ValueError):
            loaded_session.reset_field(name)


class TestHistory:
    """Tests for undo/redo through the session."""

    def test_undo_redo_model(self, loaded_session):
        loaded_session.update(rotation=10)
        loaded_session.update(rotation=20)

        assert loaded_session.undo()
        assert loaded_session.model.rotation == 10
        assert loaded_session.undo()
        assert loaded_session.model.rotation == 0
        assert not loaded_session.undo()

        assert loaded_session.redo()
        assert loaded_session.model.rotation == 10

    def test_undo_restores_previous_source(self, loaded_session, red_source, large_source):
        loaded_session.load_source(large_source)
        assert loaded_session.source is large_source

        loaded_session.undo()
        assert loaded_session.source is red_source
        assert loaded_session.defaults.scale == 1.0

        loaded_session.redo()
        assert loaded_session.source is large_source
        assert loaded_session.defaults.scale == pytest.approx(0.5)

    def test_restore(self, loaded_session):
        model = loaded_session.model.replace(icon_shape="circle")
        loaded_session.restore(model)

        assert loaded_session.model is model
        assert len(loaded_session.history) == 2


class TestRendering:
    """Tests for preview rendering."""

    def test_preview_matches_render(self, loaded_session):
        loaded_session.update(filter_kind="grayscale")
        assert list(loaded_session.render_preview().getdata()) == list(loaded_session.render(512).getdata())

    def test_tainted_preview_falls_back(self, session):
        tainted = SourceImage.from_image(Image.new("RGBA", (64, 64), "red"), origin="https://cdn.test/a.png", tainted=True)
        session.load_source(tainted)
        session.update(filter_kind="invert")

        with pytest.raises(CrossOriginError):
            session.render(96)

        preview = session.render_preview()
        expected = render_icon(tainted, session.model.replace(filter_kind="none"), 512)
        assert list(preview.getdata()) == list(expected.getdata())
        assert session.status.latest().kind == "error"


class TestExport:
    """Tests for exporting through the session."""

    def test_export_posts_success(self, loaded_session):
        archive = ZipArchiveSink()
        report = loaded_session.export(sinks=[archive])

        assert report.succeeded
        assert len(archive.names) == 5
        assert loaded_session.status.latest().text == "Exported 5 icons"

    def test_export_uses_frozen_model(self, loaded_session):
        steps = loaded_session.iter_export(ExportOptions())
        first = next(steps)
        loaded_session.update(rotation=45)

        remaining = list(steps)
        assert first.ok
        assert all(step.ok for step in remaining)

    def test_export_without_source(self, session):
        with pytest.raises(SourceUnavailableError):
            session.export()
        assert session.status.latest().kind == "error"

    def test_export_reports_partial_failure(self, loaded_session, monkeypatch):
        def failing_render(source, model, target_size, *args, **kwargs):
            if target_size == 192:
                raise MemoryError("too big")
            return render_icon(source, model, target_size, *args, **kwargs)

        monkeypatch.setattr(export_orchestrator, "render_icon", failing_render)
        report = loaded_session.export()

        assert report.partial
        message = loaded_session.status.latest()
        assert message.kind == "error"
        assert message.text == "1 of 5 icon sizes failed"

    def test_cancelled_export_posts_info(self, loaded_session):
        report = loaded_session.export(should_cancel=lambda: True)

        assert report.cancelled
        assert not report.succeeded
        assert len(report.artifacts) == 1
        assert loaded_session.status.latest().kind == "info"
        assert loaded_session.status.latest().text == "Export cancelled"


class TestExportArchive:
    """Tests for saving a ZIP archive through the session."""

    def test_saves_archive(self, loaded_session, temp_project_dir):
        saved = loaded_session.export_archive(temp_project_dir)

        assert saved == temp_project_dir / "android_icons.zip"
        with zipfile.ZipFile(saved) as zf:
            assert len(zf.namelist()) == 5

    def test_cancel_after_first_size_saves_nothing(self, loaded_session, temp_project_dir):
        seen = []

        saved = loaded_session.export_archive(
            temp_project_dir,
            progress=seen.append,
            should_cancel=lambda: len(seen) >= 1,
        )

        assert saved is None
        assert [step.index for step in seen] == [1]
        assert not (temp_project_dir / "android_icons.zip").exists()
        assert loaded_session.status.latest().text == "Export cancelled"

    def test_nothing_saved_when_every_size_fails(self, loaded_session, temp_project_dir, monkeypatch):
        def broken(*args, **kwargs):
            raise MemoryError("too big")

        monkeypatch.setattr(export_orchestrator, "render_icon", broken)

        assert loaded_session.export_archive(temp_project_dir) is None
        assert list(temp_project_dir.iterdir()) == []

    def test_existing_archive_without_overwrite(self, loaded_session, temp_project_dir):
        loaded_session.export_archive(temp_project_dir)

        with pytest.raises(ValueError):
            loaded_session.export_archive(temp_project_dir, overwrite=False)

    def test_without_source(self, session, temp_project_dir):
        with pytest.raises(SourceUnavailableError):
            session.export_archive(temp_project_dir)
        assert list(temp_project_dir.iterdir()) == []
