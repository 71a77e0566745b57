"""
Transform model for Icon Studio.

The transform model is the plain value bag describing how the source image
is placed on the icon canvas. Every geometric field is expressed in pixels of
the reference canvas (the live preview); renders at other sizes rescale by
target_size / reference_size.

Classes:
    TextOverlay: Optional text drawn on top of the icon
    TransformModel: Complete, immutable editor state

Functions:
    fit_scale: Default scale that fits a source inside the reference canvas
    validate_transform_changes: Boundary validation for user-supplied values
"""

import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

from IS_Libs.constants import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_BLUR_RADIUS,
    DEFAULT_BORDER_COLOR,
    DEFAULT_BORDER_WIDTH,
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_OFFSET,
    DEFAULT_PADDING,
    DEFAULT_ROTATION,
    DEFAULT_SCALE,
    FILTER_KINDS,
    FILTER_NONE,
    ICON_SHAPES,
    PADDING_UNIT_PERCENT,
    PADDING_UNIT_PX,
    PADDING_UNITS,
    REFERENCE_CANVAS_SIZE,
    SHAPE_NONE,
)
from IS_Libs.ImageEditingLib.image_models import RgbColor, parse_color


def fit_scale(source_size: Optional[Tuple[int, int]], reference_size: int = REFERENCE_CANVAS_SIZE) -> float:
    """
    Compute the default scale for a freshly loaded source.

    Sources larger than the reference canvas in either dimension are shrunk
    so the unrotated image fits; smaller sources keep scale 1.

    Args:
        source_size: (width, height) of the source, or None when nothing is loaded
        reference_size: Reference canvas dimension

    Returns:
        The fit scale
    """
    if not source_size:
        return DEFAULT_SCALE

    width, height = source_size
    if width <= 0 or height <= 0:
        return DEFAULT_SCALE

    if width > reference_size or height > reference_size:
        return min(reference_size / width, reference_size / height)
    return DEFAULT_SCALE


@dataclass(frozen=True)
class TextOverlay:
    """Text drawn last, on top of every other layer.

    Attributes:
        content: Text to draw; empty means no overlay
        font_size: Font size in reference pixels
        font_color: RGB text colour
        x_offset: Horizontal offset from the canvas centre (reference pixels)
        y_offset: Vertical offset from the canvas centre (reference pixels)
    """
    content: str = ""
    font_size: float = DEFAULT_FONT_SIZE
    font_color: RgbColor = DEFAULT_FONT_COLOR
    x_offset: float = DEFAULT_OFFSET
    y_offset: float = DEFAULT_OFFSET

    @property
    def enabled(self) -> bool:
        return bool(self.content)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["font_color"] = list(self.font_color)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextOverlay":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "font_color" in filtered:
            filtered["font_color"] = parse_color(filtered["font_color"])
        if "content" in filtered:
            filtered["content"] = str(filtered["content"] or "")
        for key in ("font_size", "x_offset", "y_offset"):
            if key in filtered:
                filtered[key] = float(filtered[key])
        return cls(**filtered)


@dataclass(frozen=True)
class TransformModel:
    """Complete editor state for one icon.

    Instances are never mutated; use replace() to derive a changed copy.
    Setters do not validate, see validate_transform_changes().
    """
    scale: float = DEFAULT_SCALE
    rotation: float = DEFAULT_ROTATION
    x_offset: float = DEFAULT_OFFSET
    y_offset: float = DEFAULT_OFFSET
    background_color: RgbColor = DEFAULT_BACKGROUND_COLOR
    padding: float = DEFAULT_PADDING
    padding_unit: str = PADDING_UNIT_PX
    border_width: float = DEFAULT_BORDER_WIDTH
    border_color: RgbColor = DEFAULT_BORDER_COLOR
    icon_shape: str = SHAPE_NONE
    filter_kind: str = FILTER_NONE
    blur_radius: float = DEFAULT_BLUR_RADIUS
    text: TextOverlay = field(default_factory=TextOverlay)

    @classmethod
    def defaults_for(
        cls,
        source_size: Optional[Tuple[int, int]] = None,
        reference_size: int = REFERENCE_CANVAS_SIZE,
    ) -> "TransformModel":
        """Documented defaults, with the fit scale computed for the source."""
        return cls(scale=fit_scale(source_size, reference_size))

    @property
    def normalized_rotation(self) -> float:
        return self.rotation % 360

    def padding_pixels(self, reference_size: int = REFERENCE_CANVAS_SIZE) -> float:
        """Padding in reference pixels, resolving percentage padding."""
        if self.padding_unit == PADDING_UNIT_PERCENT:
            return self.padding * reference_size / 100.0
        return float(self.padding)

    def replace(self, **changes: Any) -> "TransformModel":
        """Return a copy with the given fields changed.

        Text fields may be given with a 'text_' prefix (text_content,
        text_font_size, ...) as a shortcut for replacing the overlay.
        """
        text_changes = {
            key[len("text_"):]: changes.pop(key)
            for key in list(changes)
            if key.startswith("text_")
        }
        for key in ("background_color", "border_color"):
            if key in changes:
                changes[key] = parse_color(changes[key])
        if text_changes:
            if "font_color" in text_changes:
                text_changes["font_color"] = parse_color(text_changes["font_color"])
            changes["text"] = replace(changes.get("text", self.text), **text_changes)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "text"}
        data["background_color"] = list(self.background_color)
        data["border_color"] = list(self.border_color)
        data["text"] = self.text.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransformModel":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}

        for key in ("scale", "rotation", "x_offset", "y_offset", "padding", "border_width", "blur_radius"):
            if key in filtered:
                filtered[key] = float(filtered[key])
        for key in ("background_color", "border_color"):
            if key in filtered:
                filtered[key] = parse_color(filtered[key])

        text_data = filtered.get("text")
        if isinstance(text_data, dict):
            filtered["text"] = TextOverlay.from_dict(text_data)
        elif not isinstance(text_data, TextOverlay):
            filtered.pop("text", None)

        return cls(**filtered)


_NUMERIC_FIELDS = (
    "scale",
    "rotation",
    "x_offset",
    "y_offset",
    "padding",
    "border_width",
    "blur_radius",
    "font_size",
)


def validate_transform_changes(changes: Dict[str, Any]) -> None:
    """
    Reject out-of-range user input before it reaches the model.

    Args:
        changes: Field name to new value, as accepted by TransformModel.replace()

    Raises:
        ValueError: If a value is out of range or an enumeration is unknown
    """
    known = set(TransformModel.__dataclass_fields__)
    for key, value in changes.items():
        base_key = key
        if key.startswith("text_"):
            base_key = key[len("text_"):]
            if base_key not in TextOverlay.__dataclass_fields__:
                raise ValueError(f"Unknown text field: {key}")
        elif key not in known:
            raise ValueError(f"Unknown transform field: {key}")

        if base_key in _NUMERIC_FIELDS and not math.isfinite(float(value)):
            raise ValueError(f"{key} must be a finite number, got {value}")

        if base_key == "scale" and float(value) <= 0:
            raise ValueError(f"scale must be > 0, got {value}")
        if base_key in ("padding", "border_width", "blur_radius") and float(value) < 0:
            raise ValueError(f"{key} must be >= 0, got {value}")
        if key == "text_font_size" and float(value) <= 0:
            raise ValueError(f"text_font_size must be > 0, got {value}")
        if key == "icon_shape" and value not in ICON_SHAPES:
            raise ValueError(f"icon_shape must be one of {', '.join(ICON_SHAPES)}, got {value}")
        if key == "filter_kind" and value not in FILTER_KINDS:
            raise ValueError(f"filter_kind must be one of {', '.join(FILTER_KINDS)}, got {value}")
        if key == "padding_unit" and value not in PADDING_UNITS:
            raise ValueError(f"padding_unit must be one of {', '.join(PADDING_UNITS)}, got {value}")
        if base_key in ("background_color", "border_color", "font_color"):
            parse_color(value)
