"""
Export Orchestrator.

Renders a frozen transform model at every size of the selected size tables,
optionally sharpens each result, encodes it as PNG and hands it to the sinks.

A failure at one size is recorded and the batch continues. Exports with no
source, or with a source whose pixels cannot be read back, are rejected before
anything is rendered.

Example:
    >>> options = ExportOptions(platforms=["android"], sharpen=True)
    >>> archive = ZipArchiveSink(options.archive_name)
    >>> report = export_icons(source, model, options, sinks=[archive])
    >>> report.raise_for_failures()
    >>> blob = archive.finish()
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence
import io
import logging

import numpy as np

from IS_Libs.constants import (
    DEFAULT_ARCHIVE_NAME,
    DEFAULT_OUTPUT_FORMAT,
    FILTER_SHARPEN,
    PLATFORM_ANDROID,
    REFERENCE_CANVAS_SIZE,
    SHARPEN_BORDER_REPLICATE,
    SHARPEN_BORDER_ZERO,
)
from IS_Libs.errors import CrossOriginError, EncodeError, PartialExportFailure, SourceUnavailableError
from IS_Libs.ExportLib.size_tables import SizeTable, get_size_table
from IS_Libs.ImageEditingLib.compositor import render_icon
from IS_Libs.ImageEditingLib.image_models import SourceImage
from IS_Libs.ImageEditingLib.pixel_filters import FilterRegistry, get_default_registry
from IS_Libs.ImageEditingLib.transform_model import TransformModel
from IS_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)


@dataclass
class ExportOptions:
    """Options for one export run.

    Attributes:
        platforms: Size tables to export, by platform name
        sharpen: Apply the sharpen kernel after compositing each size
        sharpen_border_mode: 'replicate' or 'zero' edge handling for sharpen
        archive_name: File name of the ZIP archive
        reference_size: Reference canvas dimension the model is expressed in
    """
    platforms: List[str] = field(default_factory=lambda: [PLATFORM_ANDROID])
    sharpen: bool = False
    sharpen_border_mode: str = SHARPEN_BORDER_REPLICATE
    archive_name: str = DEFAULT_ARCHIVE_NAME
    reference_size: int = REFERENCE_CANVAS_SIZE

    def __post_init__(self):
        if self.sharpen_border_mode not in (SHARPEN_BORDER_REPLICATE, SHARPEN_BORDER_ZERO):
            raise ValueError(f"Unknown sharpen_border_mode: {self.sharpen_border_mode}")
        if self.reference_size <= 0:
            raise ValueError(f"reference_size must be > 0, got {self.reference_size}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportOptions":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        platforms = filtered.get("platforms")
        if isinstance(platforms, str):
            filtered["platforms"] = [platforms]
        elif platforms is not None:
            filtered["platforms"] = [str(p) for p in platforms]
        return cls(**filtered)

    def size_tables(self) -> List[SizeTable]:
        """
        Raises:
            KeyError: If a platform has no registered size table
        """
        return [get_size_table(platform) for platform in self.platforms]


@dataclass(frozen=True)
class ExportArtifact:
    """One encoded icon."""
    path: str
    name: str
    platform: str
    pixel_size: int
    data: bytes
    download_name: str


@dataclass(frozen=True)
class ExportFailure:
    """One size that could not be produced."""
    platform: str
    name: str
    pixel_size: int
    error: BaseException


@dataclass(frozen=True)
class ExportProgress:
    """Result of one export step.

    Attributes:
        index: 1-based position of this size in the run
        total: Number of sizes in the run
        artifact: Encoded icon, or None if this size failed
        failure: Failure record, or None if this size succeeded
    """
    index: int
    total: int
    artifact: Optional[ExportArtifact] = None
    failure: Optional[ExportFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class ExportReport:
    """Outcome of an export run."""
    artifacts: List[ExportArtifact] = field(default_factory=list)
    failures: List[ExportFailure] = field(default_factory=list)
    total: int = 0
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures and not self.cancelled

    @property
    def partial(self) -> bool:
        return bool(self.failures) and bool(self.artifacts)

    def record(self, step: ExportProgress) -> None:
        if step.artifact is not None:
            self.artifacts.append(step.artifact)
        if step.failure is not None:
            self.failures.append(step.failure)

    def raise_for_failures(self) -> None:
        """
        Raises:
            PartialExportFailure: If any size failed
        """
        if self.failures:
            raise PartialExportFailure(self)


def encode_png(image: Any) -> bytes:
    """
    Encode a PIL Image as PNG bytes.

    Raises:
        EncodeError: If Pillow cannot encode the image
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format=DEFAULT_OUTPUT_FORMAT)
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode {image.size[0]}x{image.size[1]} icon: {e}")
    return buffer.getvalue()


def render_export_size(
    source: SourceImage,
    model: TransformModel,
    pixel_size: int,
    options: ExportOptions,
    registry: Optional[FilterRegistry] = None,
) -> bytes:
    """Composite, optionally sharpen, and encode one export size."""
    registry = registry or get_default_registry()
    image = render_icon(source, model, pixel_size, options.reference_size, registry=registry)
    if options.sharpen:
        sharpened = registry.apply(FILTER_SHARPEN, np.asarray(image), border_mode=options.sharpen_border_mode)
        image = Image.fromarray(np.ascontiguousarray(sharpened))
    return encode_png(image)


def _check_exportable(source: Optional[SourceImage]) -> None:
    if source is None:
        raise SourceUnavailableError("No image loaded; nothing to export")
    if source.tainted:
        raise CrossOriginError(
            f"Cannot export {source.origin}: its pixels may not be read back from this origin"
        )


def _export_steps(
    source: SourceImage,
    model: TransformModel,
    tables: Sequence[SizeTable],
    options: ExportOptions,
    sinks: Sequence[Any],
    registry: Optional[FilterRegistry],
) -> Iterator[ExportProgress]:
    jobs = [(table, entry) for table in tables for entry in table]
    total = len(jobs)

    for index, (table, entry) in enumerate(jobs, start=1):
        try:
            data = render_export_size(source, model, entry.pixel_size, options, registry)
            artifact = ExportArtifact(
                path=table.path_for(entry),
                name=entry.name,
                platform=table.platform,
                pixel_size=entry.pixel_size,
                data=data,
                download_name=table.download_name_for(entry),
            )
            for sink in sinks:
                sink.add(artifact.path, artifact.data)
        except Exception as e:
            logger.exception(f"Export of {table.platform}/{entry.name} ({entry.pixel_size}px) failed")
            yield ExportProgress(
                index=index,
                total=total,
                failure=ExportFailure(table.platform, entry.name, entry.pixel_size, e),
            )
            continue

        logger.debug(f"Exported {artifact.path} ({entry.pixel_size}px, {len(data)} bytes)")
        yield ExportProgress(index=index, total=total, artifact=artifact)


def iter_export(
    source: Optional[SourceImage],
    model: TransformModel,
    tables: Optional[Sequence[SizeTable]] = None,
    options: Optional[ExportOptions] = None,
    sinks: Optional[Sequence[Any]] = None,
    registry: Optional[FilterRegistry] = None,
) -> Iterator[ExportProgress]:
    """
    Export lazily, one size per step.

    The source is checked immediately, so an unusable source raises here and
    not on the first iteration.

    Args:
        source: Source image to export
        model: Frozen transform model
        tables: Size tables (defaults to the tables named in options.platforms)
        options: Export options (defaults if None)
        sinks: Objects with add(path, data) receiving each artifact
        registry: Filter registry (default registry if None)

    Returns:
        Iterator yielding one ExportProgress per size

    Raises:
        SourceUnavailableError: If source is None
        CrossOriginError: If the source is tainted
        KeyError: If an option names an unknown platform
    """
    options = options or ExportOptions()
    _check_exportable(source)
    if tables is None:
        tables = options.size_tables()
    return _export_steps(source, model, list(tables), options, list(sinks or ()), registry)


def export_icons(
    source: Optional[SourceImage],
    model: TransformModel,
    options: Optional[ExportOptions] = None,
    tables: Optional[Sequence[SizeTable]] = None,
    sinks: Optional[Sequence[Any]] = None,
    registry: Optional[FilterRegistry] = None,
    progress: Optional[Callable[[ExportProgress], None]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ExportReport:
    """
    Run a whole export and collect the results.

    Args:
        progress: Called after every size, e.g. to keep a UI responsive
        should_cancel: Polled after every size; a true result stops the run
            and marks the report as cancelled

    Returns:
        ExportReport with artifacts and failures. Call raise_for_failures()
        to turn failures into PartialExportFailure.
    """
    steps = iter_export(source, model, tables=tables, options=options, sinks=sinks, registry=registry)
    report = ExportReport()
    for step in steps:
        report.total = step.total
        report.record(step)
        if progress is not None:
            progress(step)
        if should_cancel is not None and should_cancel():
            steps.close()
            report.cancelled = True
            logger.info(f"Export cancelled after {step.index} of {step.total} sizes")
            return report

    logger.info(
        f"Export finished: {len(report.artifacts)} of {report.total} sizes written, "
        f"{len(report.failures)} failed"
    )
    return report

