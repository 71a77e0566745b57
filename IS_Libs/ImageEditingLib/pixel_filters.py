"""
Pixel Filter Operations and Filter Registry.

Provides per-pixel colour operators over raw RGBA buffers:
- Grayscale: unweighted mean of R, G and B
- Sepia: standard 3x3 sepia colour matrix
- Invert: 255 - channel for R, G and B
- Sharpen: 3x3 high-pass convolution (export-time toggle)
- Blur: Gaussian blur through a pluggable backend

Buffers are numpy arrays of shape (height, width, 4) and dtype uint8. Every
operator returns a new buffer and leaves alpha untouched unless noted.

Example:
    >>> import numpy as np
    >>> buffer = np.zeros((4, 4, 4), dtype=np.uint8)
    >>> inverted = invert(buffer)
    >>>
    >>> # Through the registry
    >>> registry = get_default_registry()
    >>> sepia_buffer = registry.apply("sepia", buffer)
"""

from typing import Any, Callable, Dict, List, Optional
import logging

import numpy as np

from IS_Libs.constants import (
    FILTER_BLUR,
    FILTER_GRAYSCALE,
    FILTER_INVERT,
    FILTER_NONE,
    FILTER_SEPIA,
    FILTER_SHARPEN,
    SELECTABLE_TAG,
    SEPIA_MATRIX,
    SHARPEN_BORDER_REPLICATE,
    SHARPEN_BORDER_ZERO,
    SHARPEN_KERNEL,
)
from IS_Libs.pillow_compat import Image, ImageFilter

logger = logging.getLogger(__name__)

# Type alias for operator function
FilterOperator = Callable[..., np.ndarray]
BlurBackend = Callable[[np.ndarray, float], np.ndarray]


def _as_rgba_buffer(buffer: Any) -> np.ndarray:
    """Validate and return the buffer as a (H, W, 4) uint8 array."""
    array = np.asarray(buffer)
    if array.ndim != 3 or array.shape[2] != 4:
        raise ValueError(f"Expected RGBA buffer of shape (H, W, 4), got {array.shape}")
    if array.dtype != np.uint8:
        raise TypeError(f"Expected uint8 buffer, got {array.dtype}")
    return array


# ============================================================================
# Colour operators
# ============================================================================

def grayscale(buffer: Any) -> np.ndarray:
    """
    Replace R, G and B by their unweighted mean.

    Args:
        buffer: RGBA buffer (H, W, 4) uint8

    Returns:
        New RGBA buffer; alpha is copied unchanged
    """
    src = _as_rgba_buffer(buffer)
    result = src.copy()
    mean = src[..., :3].astype(np.uint16).sum(axis=2) // 3
    result[..., :3] = mean.astype(np.uint8)[..., np.newaxis]
    return result


def sepia(buffer: Any) -> np.ndarray:
    """
    Apply the standard sepia colour matrix, clamping each channel to 0-255.

    Args:
        buffer: RGBA buffer (H, W, 4) uint8

    Returns:
        New RGBA buffer; alpha is copied unchanged
    """
    src = _as_rgba_buffer(buffer)
    result = src.copy()
    matrix = np.asarray(SEPIA_MATRIX, dtype=np.float64)
    toned = src[..., :3].astype(np.float64) @ matrix.T
    result[..., :3] = np.clip(toned, 0, 255).astype(np.uint8)
    return result


def invert(buffer: Any) -> np.ndarray:
    """
    Replace each colour channel by 255 - channel.

    Args:
        buffer: RGBA buffer (H, W, 4) uint8

    Returns:
        New RGBA buffer; alpha is copied unchanged
    """
    src = _as_rgba_buffer(buffer)
    result = src.copy()
    result[..., :3] = 255 - src[..., :3]
    return result


def sharpen(buffer: Any, border_mode: str = SHARPEN_BORDER_REPLICATE) -> np.ndarray:
    """
    Convolve R, G and B with the 3x3 sharpen kernel.

    The kernel sums to 1, so flat regions are unchanged. Alpha is passed
    through without being convolved.

    Args:
        buffer: RGBA buffer (H, W, 4) uint8
        border_mode: 'replicate' repeats edge pixels for out-of-bounds samples;
                     'zero' makes out-of-bounds samples contribute nothing

    Returns:
        New RGBA buffer with each colour channel clamped to 0-255

    Raises:
        ValueError: If border_mode is unknown
    """
    src = _as_rgba_buffer(buffer)

    if border_mode == SHARPEN_BORDER_REPLICATE:
        pad_kwargs: Dict[str, Any] = {"mode": "edge"}
    elif border_mode == SHARPEN_BORDER_ZERO:
        pad_kwargs = {"mode": "constant", "constant_values": 0}
    else:
        raise ValueError(
            f"Unknown border_mode: {border_mode}. "
            f"Valid modes: {SHARPEN_BORDER_REPLICATE}, {SHARPEN_BORDER_ZERO}"
        )

    height, width = src.shape[:2]
    color = src[..., :3].astype(np.int32)
    padded = np.pad(color, ((1, 1), (1, 1), (0, 0)), **pad_kwargs)

    accumulated = np.zeros_like(color)
    for ky, row in enumerate(SHARPEN_KERNEL):
        for kx, weight in enumerate(row):
            if weight == 0:
                continue
            accumulated += weight * padded[ky:ky + height, kx:kx + width]

    result = src.copy()
    result[..., :3] = np.clip(accumulated, 0, 255).astype(np.uint8)
    return result


# ============================================================================
# Blur (pluggable backend)
# ============================================================================

def _pil_gaussian_blur(buffer: np.ndarray, radius: float) -> np.ndarray:
    image = Image.fromarray(buffer)
    blurred = image.filter(ImageFilter.GaussianBlur(radius=radius))
    return np.asarray(blurred.convert("RGBA")).copy()


_blur_backends: Dict[str, BlurBackend] = {"pil": _pil_gaussian_blur}
_active_blur_backend: Optional[str] = "pil"


def register_blur_backend(name: str, backend: BlurBackend, activate: bool = False) -> None:
    """
    Register a blur primitive.

    Args:
        name: Backend name
        backend: Callable taking (buffer, radius) and returning a new buffer
        activate: Make it the active backend immediately

    Raises:
        ValueError: If name is empty or backend is not callable
    """
    global _active_blur_backend

    name = str(name).strip()
    if not name:
        raise ValueError("backend name cannot be empty")
    if not callable(backend):
        raise ValueError(f"backend must be callable, got {type(backend)}")

    _blur_backends[name] = backend
    logger.debug(f"Registered blur backend: {name}")
    if activate:
        _active_blur_backend = name


def set_blur_backend(name: Optional[str]) -> None:
    """
    Select the active blur backend, or None to disable blurring.

    Raises:
        KeyError: If name is not a registered backend
    """
    global _active_blur_backend

    if name is not None and name not in _blur_backends:
        available = ", ".join(sorted(_blur_backends))
        raise KeyError(f"Unknown blur backend '{name}'. Available backends: {available}")
    _active_blur_backend = name


def get_blur_backend() -> Optional[str]:
    """Name of the active blur backend, or None when blurring is unavailable."""
    return _active_blur_backend


def blur(buffer: Any, radius: float = 4.0) -> np.ndarray:
    """
    Approximate Gaussian blur using the active backend.

    With no backend available the buffer is returned unchanged and a warning
    is logged.

    Args:
        buffer: RGBA buffer (H, W, 4) uint8
        radius: Blur radius in pixels of this buffer

    Returns:
        New RGBA buffer

    Raises:
        ValueError: If radius is negative
    """
    src = _as_rgba_buffer(buffer)
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")

    if radius == 0:
        return src.copy()

    backend = _blur_backends.get(_active_blur_backend) if _active_blur_backend else None
    if backend is None:
        logger.warning("No blur backend available; blur filter skipped")
        return src.copy()

    return _as_rgba_buffer(backend(np.ascontiguousarray(src), float(radius)))


# ============================================================================
# Filter Registry
# ============================================================================

class FilterRegistry:
    """
    Registry for named pixel operators.

    Example:
        >>> registry = FilterRegistry()
        >>> registry.register("invert", invert, description="Invert colours")
        >>> result = registry.apply("invert", buffer)
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._operators: Dict[str, FilterOperator] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        name: str,
        operator: FilterOperator,
        description: str = "",
        scales_with_size: bool = False,
        tags: Optional[List[str]] = None,
    ) -> None:
        """
        Register a filter operator.

        Args:
            name: Unique filter name (e.g., "sepia")
            operator: Callable taking a buffer (plus keyword params), returning a new buffer
            description: Human-readable description
            scales_with_size: Whether the operator takes a radius that must be
                              rescaled to the render size
            tags: Optional list of tags for categorization

        Raises:
            ValueError: If name is empty or operator is not callable
            RuntimeError: If name is already registered
        """
        name = str(name).strip()

        if not name:
            raise ValueError("name cannot be empty")

        if not callable(operator):
            raise ValueError(f"operator must be callable, got {type(operator)}")

        if name in self._operators:
            raise RuntimeError(
                f"Filter '{name}' is already registered. "
                f"Use unregister() first to replace it."
            )

        self._operators[name] = operator
        self._metadata[name] = {
            "description": str(description),
            "scales_with_size": bool(scales_with_size),
            "tags": list(tags) if tags else [],
        }

        logger.debug(f"Registered filter operator: {name}")

    def unregister(self, name: str) -> bool:
        name = str(name).strip()

        if name in self._operators:
            del self._operators[name]
            del self._metadata[name]
            logger.debug(f"Unregistered filter operator: {name}")
            return True

        return False

    def get_operator(self, name: str) -> FilterOperator:
        """
        Get the operator for a filter name.

        Raises:
            KeyError: If name is not registered
        """
        name = str(name).strip()

        if name not in self._operators:
            available = ", ".join(self.list_filters())
            raise KeyError(
                f"No operator registered for filter '{name}'. "
                f"Available filters: {available}"
            )

        return self._operators[name]

    def has_operator(self, name: str) -> bool:
        return str(name).strip() in self._operators

    def apply(self, name: str, buffer: Any, **params: Any) -> np.ndarray:
        operator = self.get_operator(name)
        return operator(buffer, **params)

    def list_filters(self) -> List[str]:
        return sorted(self._operators.keys())

    def get_metadata(self, name: str) -> Dict[str, Any]:
        name = str(name).strip()

        if name not in self._metadata:
            raise KeyError(f"No metadata for filter: {name}")

        return dict(self._metadata[name])

    def filter_by_tag(self, tag: str) -> List[str]:
        tag = str(tag).strip().lower()
        return sorted(
            name
            for name, meta in self._metadata.items()
            if tag in [t.lower() for t in meta.get("tags", [])]
        )


# Global singleton registry
_default_registry: Optional[FilterRegistry] = None


def get_default_registry() -> FilterRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers the built-in operators.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = FilterRegistry()
        register_default_filters(_default_registry)

    return _default_registry


def selectable_filter_kinds(registry: Optional[FilterRegistry] = None) -> List[str]:
    """Filter kinds offered to the user: "none" followed by every operator tagged "selectable"."""
    registry = registry or get_default_registry()
    return [FILTER_NONE] + registry.filter_by_tag(SELECTABLE_TAG)


def register_default_filters(registry: FilterRegistry) -> None:
    """Register grayscale, sepia, invert, blur and sharpen."""
    registry.register(
        FILTER_GRAYSCALE,
        grayscale,
        description="Unweighted mean of R, G and B",
        tags=["color", SELECTABLE_TAG],
    )
    registry.register(
        FILTER_SEPIA,
        sepia,
        description="Standard sepia colour matrix",
        tags=["color", SELECTABLE_TAG],
    )
    registry.register(
        FILTER_INVERT,
        invert,
        description="Invert colour channels",
        tags=["color", SELECTABLE_TAG],
    )
    registry.register(
        FILTER_BLUR,
        blur,
        description="Gaussian blur through the active blur backend",
        scales_with_size=True,
        tags=["convolution", SELECTABLE_TAG],
    )
    registry.register(
        FILTER_SHARPEN,
        sharpen,
        description="3x3 sharpen kernel, applied at export time",
        tags=["convolution", "export"],
    )

    logger.info("Registered default pixel filters")


def apply_filter(
    image: Any,
    kind: str,
    scale_factor: float = 1.0,
    blur_radius: float = 4.0,
    registry: Optional[FilterRegistry] = None,
) -> Any:
    """
    Apply a named filter to a PIL Image.

    Args:
        image: PIL Image (converted to RGBA)
        kind: Filter name; 'none' returns an RGBA copy
        scale_factor: target_size / reference_size, used for size-dependent filters
        blur_radius: Blur radius in reference pixels
        registry: Registry to look the filter up in (default registry if None)

    Returns:
        New RGBA PIL Image

    Raises:
        TypeError: If image is not a PIL Image
        KeyError: If the filter is not registered
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    rgba = image.convert("RGBA")
    if kind == FILTER_NONE:
        return rgba.copy()

    registry = registry or get_default_registry()
    buffer = np.asarray(rgba)
    params: Dict[str, Any] = {}
    if registry.get_metadata(kind)["scales_with_size"]:
        params["radius"] = blur_radius * scale_factor

    result = registry.apply(kind, buffer, **params)
    return Image.fromarray(np.ascontiguousarray(result))
