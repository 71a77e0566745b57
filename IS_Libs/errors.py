"""
Error taxonomy for Icon Studio.

Classes:
    IconStudioError: Base class for all domain errors
    DecodeError: Source bytes are not a valid image (recoverable)
    SourceUnavailableError: No source image is loaded or it could not be fetched
    CrossOriginError: Pixel read-back blocked by the source's origin policy
    DegenerateGeometryError: Drawable area collapsed to zero or less
    EncodeError: Raster or archive encoding failed for one artifact
    PartialExportFailure: One or more export sizes failed
"""

from typing import Any


class IconStudioError(Exception):
    """Base class for Icon Studio errors."""


class DecodeError(IconStudioError):
    """Raised when source bytes cannot be decoded as an image."""


class SourceUnavailableError(IconStudioError):
    """Raised when an operation needs a source image and none can be read."""


class CrossOriginError(IconStudioError):
    """
    Raised when pixels of a tainted source must be read back.

    Drawing a tainted source is allowed; reading the composited pixels
    (filters, encoding) is not. The remedy is to fix the permissions at the
    source, so the system never retries on its own.
    """


class DegenerateGeometryError(IconStudioError):
    """Raised when padding and border leave no drawable area for the image."""

    def __init__(self, drawable_area: float, target_size: int):
        self.drawable_area = drawable_area
        self.target_size = target_size
        super().__init__(
            f"Drawable area is {drawable_area:.2f}px on a {target_size}px canvas"
        )


class EncodeError(IconStudioError):
    """Raised when an image or archive cannot be encoded."""


class PartialExportFailure(IconStudioError):
    """Raised by ExportReport.raise_for_failures() when some sizes failed."""

    def __init__(self, report: Any):
        self.report = report
        names = ", ".join(f"{failure.platform}/{failure.name}" for failure in report.failures)
        super().__init__(
            f"{len(report.failures)} of {report.total} icon sizes failed: {names}"
        )
