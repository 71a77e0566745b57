"""
Editing session.

EditorSession owns everything one open editor needs: the current source
image, the current transform model, the per-image defaults, the undo/redo
history and the status board. Several sessions can live side by side; nothing
here is module-level state.

Flow:
    load_* -> fresh defaults, first history commit
    preview_change -> model updated and re-rendered, no commit (drag in progress)
    commit_change / update -> model updated and committed (settled input)
    undo / redo -> model and source restored from history
    export -> frozen model rendered at every size
"""

from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Union
import logging

from IS_Libs.constants import FILTER_NONE, REFERENCE_CANVAS_SIZE
from IS_Libs.errors import CrossOriginError, IconStudioError
from IS_Libs.ExportLib.export_orchestrator import (
    ExportOptions,
    ExportProgress,
    ExportReport,
    export_icons,
    iter_export,
)
from IS_Libs.ExportLib.export_sinks import ZipArchiveSink
from IS_Libs.HistoryLib.history_manager import HistoryEntry, HistoryManager
from IS_Libs.ImageEditingLib.compositor import render_icon
from IS_Libs.ImageEditingLib.image_models import SourceImage, decode_source
from IS_Libs.ImageEditingLib.pixel_filters import FilterRegistry
from IS_Libs.ImageEditingLib.transform_model import (
    TextOverlay,
    TransformModel,
    validate_transform_changes,
)
from IS_Libs.SessionLib.image_loader import fetch_image_url, load_image_file, load_image_source
from IS_Libs.SessionLib.status_messages import StatusBoard

logger = logging.getLogger(__name__)


class EditorSession:
    """
    State and operations of one editing session.

    Args:
        reference_size: Preview canvas dimension all model units refer to
        history: History manager (a new bounded one if None)
        status: Status board (a new one if None)
        registry: Filter registry used for renders (default registry if None)
        request_origin: Origin remote images are requested on behalf of

    Example:
        >>> session = EditorSession()
        >>> session.load_path("logo.png")
        >>> session.update(rotation=15, icon_shape="circle")
        >>> preview = session.render_preview()
        >>> report = session.export(ExportOptions(platforms=["android"]))
    """

    def __init__(
        self,
        reference_size: int = REFERENCE_CANVAS_SIZE,
        history: Optional[HistoryManager] = None,
        status: Optional[StatusBoard] = None,
        registry: Optional[FilterRegistry] = None,
        request_origin: Optional[str] = None,
    ):
        if reference_size <= 0:
            raise ValueError(f"reference_size must be > 0, got {reference_size}")
        self.reference_size = reference_size
        self.history = history or HistoryManager()
        self.status = status or StatusBoard()
        self.registry = registry
        self.request_origin = request_origin

        self.source: Optional[SourceImage] = None
        self.model = TransformModel()
        self.defaults = TransformModel()

    @property
    def image_loaded(self) -> bool:
        return self.source is not None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_source(self, source: SourceImage) -> None:
        """Make source current with fresh defaults and commit the new state."""
        self.source = source
        self.defaults = TransformModel.defaults_for(source.size, self.reference_size)
        self.model = self.defaults
        self.history.commit(self.model, self.source)
        self.status.success(f"Loaded image {source.width}x{source.height}")

    def _load(self, loader: Callable[[], SourceImage]) -> SourceImage:
        try:
            source = loader()
        except IconStudioError as e:
            self.status.error(str(e))
            raise
        self.load_source(source)
        return source

    def load_bytes(self, data: bytes, origin: str = "<bytes>") -> SourceImage:
        """
        Decode and load raw image bytes.

        Raises:
            DecodeError: If the bytes are not an image; the session is unchanged
        """
        return self._load(lambda: decode_source(data, origin=origin))

    def load_path(self, path: Any) -> SourceImage:
        """
        Raises:
            SourceUnavailableError, DecodeError: The session is unchanged
        """
        return self._load(lambda: load_image_file(path))

    def load_url(self, url: str, http_session: Any = None) -> SourceImage:
        """
        Fetch and load an image by URL.

        Raises:
            SourceUnavailableError, DecodeError: The session is unchanged
        """
        return self._load(lambda: fetch_image_url(url, request_origin=self.request_origin, session=http_session))

    def load_reference(self, reference: str) -> SourceImage:
        """Load a file path, http(s) URL or data: URL."""
        return self._load(lambda: load_image_source(reference, request_origin=self.request_origin))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def preview_change(self, changes: Dict[str, Any]) -> Any:
        """
        Apply changes without committing and render the preview.

        Raises:
            ValueError: If a change is out of range
        """
        validate_transform_changes(changes)
        self.model = self.model.replace(**changes)
        return self.render_preview()

    def commit_change(self, changes: Dict[str, Any]) -> HistoryEntry:
        """
        Apply settled changes and commit them to history.

        Raises:
            ValueError: If a change is out of range; nothing is committed
        """
        validate_transform_changes(changes)
        self.model = self.model.replace(**changes)
        return self.commit()

    def update(self, **changes: Any) -> HistoryEntry:
        return self.commit_change(changes)

    def commit(self) -> HistoryEntry:
        """Record the current state as a history snapshot."""
        return self.history.commit(self.model, self.source)

    def restore(self, model: TransformModel) -> HistoryEntry:
        """Replace the whole model (e.g. from a project file) and commit it."""
        self.model = model
        return self.commit()

    def reset(self, clear_history: bool = False) -> None:
        """
        Return every field to the defaults of the current image.

        Args:
            clear_history: Drop all undo/redo snapshots before committing
        """
        if clear_history:
            self.history.clear()
        self.model = self.defaults
        self.commit()
        self.status.info("Settings reset")

    def reset_field(self, name: str) -> HistoryEntry:
        """
        Return one field to the defaults of the current image.

        Text fields use a 'text_' prefix ('text_content', 'text_font_size', ...);
        'text' resets the whole overlay.

        Raises:
            ValueError: If the field is unknown
        """
        if name == "text":
            self.model = self.model.replace(text=TextOverlay())
        elif name.startswith("text_"):
            field_name = name[len("text_"):]
            if field_name not in TextOverlay.__dataclass_fields__:
                raise ValueError(f"Unknown text field: {name}")
            self.model = self.model.replace(**{name: getattr(self.defaults.text, field_name)})
        elif name in TransformModel.__dataclass_fields__:
            self.model = self.model.replace(**{name: getattr(self.defaults, name)})
        else:
            raise ValueError(f"Unknown transform field: {name}")
        return self.commit()

    def _apply_entry(self, entry: HistoryEntry) -> None:
        if entry.source is not self.source:
            self.source = entry.source
            size = entry.source.size if entry.source is not None else None
            self.defaults = TransformModel.defaults_for(size, self.reference_size)
            logger.debug("History step switched the source image")
        self.model = entry.model

    def undo(self) -> bool:
        entry = self.history.undo()
        if entry is None:
            return False
        self._apply_entry(entry)
        return True

    def redo(self) -> bool:
        entry = self.history.redo()
        if entry is None:
            return False
        self._apply_entry(entry)
        return True

    # ------------------------------------------------------------------
    # Rendering and export
    # ------------------------------------------------------------------

    def render(self, target_size: int) -> Any:
        """
        Raises:
            CrossOriginError: If a filter needs to read a tainted source
        """
        return render_icon(self.source, self.model, target_size, self.reference_size, registry=self.registry)

    def render_preview(self, target_size: Optional[int] = None) -> Any:
        """
        Render the live preview.

        A filter that cannot read a tainted source is skipped for the preview
        and reported on the status board.
        """
        size = target_size or self.reference_size
        try:
            return self.render(size)
        except CrossOriginError as e:
            self.status.error(str(e))
            unfiltered = self.model.replace(filter_kind=FILTER_NONE)
            return render_icon(self.source, unfiltered, size, self.reference_size, registry=self.registry)

    def iter_export(
        self,
        options: Optional[ExportOptions] = None,
        sinks: Optional[Sequence[Any]] = None,
    ) -> Iterator[ExportProgress]:
        """Step-wise export of the current state; see export_orchestrator.iter_export()."""
        options = options or ExportOptions(reference_size=self.reference_size)
        return iter_export(self.source, self.model, options=options, sinks=sinks, registry=self.registry)

    def export(
        self,
        options: Optional[ExportOptions] = None,
        sinks: Optional[Sequence[Any]] = None,
        progress: Optional[Callable[[ExportProgress], None]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ExportReport:
        """
        Export the current state and post the outcome to the status board.

        Raises:
            SourceUnavailableError: If no image is loaded
            CrossOriginError: If the source's pixels cannot be read back
        """
        options = options or ExportOptions(reference_size=self.reference_size)
        try:
            report = export_icons(
                self.source,
                self.model,
                options=options,
                sinks=sinks,
                registry=self.registry,
                progress=progress,
                should_cancel=should_cancel,
            )
        except IconStudioError as e:
            self.status.error(str(e))
            raise

        if report.cancelled:
            self.status.info("Export cancelled")
        elif report.failures:
            self.status.error(f"{len(report.failures)} of {report.total} icon sizes failed")
        else:
            self.status.success(f"Exported {len(report.artifacts)} icons")
        return report

    def export_archive(
        self,
        output_dir: Union[str, Path],
        options: Optional[ExportOptions] = None,
        progress: Optional[Callable[[ExportProgress], None]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        overwrite: bool = True,
    ) -> Optional[Path]:
        """
        Export into a ZIP archive saved under output_dir.

        A cancelled run, or one where no size succeeded, saves nothing.

        Returns:
            Path of the saved archive, or None if nothing was saved

        Raises:
            SourceUnavailableError: If no image is loaded
            CrossOriginError: If the source's pixels cannot be read back
            ValueError: If the archive exists and overwrite is False
            OSError: If the archive cannot be written
        """
        options = options or ExportOptions(reference_size=self.reference_size)
        sink = ZipArchiveSink(options.archive_name)
        report = self.export(options, sinks=[sink], progress=progress, should_cancel=should_cancel)
        if report.cancelled or not sink.names:
            return None

        saved = sink.write_to(output_dir, overwrite=overwrite)
        logger.info(f"Saved {len(sink.names)} icons to {saved}")
        return saved
