"""
Icon Compositor.

Renders a source image and a TransformModel onto a square canvas of any
size. The same code path produces the live preview (target size equal to the
reference size) and every export size, so that each export is a geometric
rescaling of the preview.

Layer order:
    background -> image (single affine transform) -> border -> pixel filter
    -> text overlay -> shape clip

Example:
    >>> source = SourceImage.from_image(Image.new("RGBA", (200, 200), "red"))
    >>> model = TransformModel.defaults_for(source.size)
    >>> preview = render_icon(source, model, 512)
    >>> mdpi = render_icon(source, model, 48)
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple
import logging
import math

from IS_Libs.constants import (
    FILTER_NONE,
    FONT_CANDIDATES,
    PLACEHOLDER_FONT_SIZE,
    PLACEHOLDER_TEXT,
    PLACEHOLDER_TEXT_COLOR,
    REFERENCE_CANVAS_SIZE,
    ROUNDED_CORNER_RATIO,
    SHAPE_CIRCLE,
    SHAPE_NONE,
    SHAPE_ROUNDED_SQUARE,
    SUPERSAMPLE_FACTOR,
)
from IS_Libs.errors import CrossOriginError, DegenerateGeometryError
from IS_Libs.ImageEditingLib.image_models import RgbColor, SourceImage
from IS_Libs.ImageEditingLib.pixel_filters import FilterRegistry, apply_filter
from IS_Libs.ImageEditingLib.transform_model import TransformModel
from IS_Libs.pillow_compat import Image, ImageChops, ImageDraw, ImageFont

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IconLayout:
    """Geometry of one render, in pixels of the target canvas.

    Attributes:
        target_size: Output canvas dimension
        scale_factor: target_size / reference_size
        inset: (padding + border) scaled to the target
        drawable_area: Side of the square left for the image
        center: Image centre after offsets
        image_size: Drawn (width, height) of the source
        border_width: Stroke width of the border
    """
    target_size: int
    scale_factor: float
    inset: float
    drawable_area: float
    center: Tuple[float, float]
    image_size: Tuple[float, float]
    border_width: float

    @property
    def degenerate(self) -> bool:
        return self.drawable_area <= 0

    def require_drawable(self) -> None:
        """
        Raises:
            DegenerateGeometryError: If padding and border leave no room
        """
        if self.degenerate:
            raise DegenerateGeometryError(self.drawable_area, self.target_size)


def compute_layout(
    source_size: Optional[Tuple[int, int]],
    model: TransformModel,
    target_size: int,
    reference_size: int = REFERENCE_CANVAS_SIZE,
) -> IconLayout:
    """
    Compute the render geometry for a target size.

    Every geometric field of the model is multiplied by
    target_size / reference_size. The user's scale composes multiplicatively
    with the drawable-area fit factor.

    Args:
        source_size: (width, height) of the source, or None for the placeholder
        model: Transform model
        target_size: Output canvas dimension (> 0)
        reference_size: Reference canvas dimension (> 0)

    Returns:
        IconLayout for this render

    Raises:
        ValueError: If target_size or reference_size is not positive
    """
    if target_size <= 0:
        raise ValueError(f"target_size must be > 0, got {target_size}")
    if reference_size <= 0:
        raise ValueError(f"reference_size must be > 0, got {reference_size}")

    scale_factor = target_size / reference_size
    inset = (model.padding_pixels(reference_size) + model.border_width) * scale_factor
    drawable_area = target_size - 2 * inset

    center = (
        target_size / 2 + model.x_offset * scale_factor,
        target_size / 2 + model.y_offset * scale_factor,
    )

    if source_size and drawable_area > 0:
        area_factor = drawable_area / reference_size
        image_size = (
            source_size[0] * model.scale * area_factor,
            source_size[1] * model.scale * area_factor,
        )
    else:
        image_size = (0.0, 0.0)

    return IconLayout(
        target_size=int(target_size),
        scale_factor=scale_factor,
        inset=inset,
        drawable_area=drawable_area,
        center=center,
        image_size=image_size,
        border_width=model.border_width * scale_factor,
    )


# ============================================================================
# Drawing helpers
# ============================================================================

def load_font(size: float) -> Any:
    """Load a scalable font at the given pixel size, falling back to Pillow's default."""
    pixel_size = max(1, int(round(size)))
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, pixel_size)
        except OSError:
            continue
    return ImageFont.load_default(size=pixel_size)


def _draw_centered_text(canvas: Any, text: str, center: Tuple[float, float], font_size: float, color: RgbColor) -> None:
    draw = ImageDraw.Draw(canvas)
    font = load_font(font_size)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = center[0] - (left + right) / 2
    y = center[1] - (top + bottom) / 2
    draw.text((x, y), text, font=font, fill=tuple(color) + (255,))


def _shape_outline(draw: Any, shape: str, size: int, **kwargs: Any) -> None:
    box = (0, 0, size - 1, size - 1)
    if shape == SHAPE_CIRCLE:
        draw.ellipse(box, **kwargs)
    elif shape == SHAPE_ROUNDED_SQUARE:
        draw.rounded_rectangle(box, radius=int(round(size * ROUNDED_CORNER_RATIO)), **kwargs)
    else:
        draw.rectangle(box, **kwargs)


def build_shape_mask(shape: str, target_size: int) -> Optional[Any]:
    """
    Build the antialiased clip mask for an icon shape.

    Args:
        shape: 'none', 'circle' or 'rounded-square'
        target_size: Mask dimension

    Returns:
        'L' mode PIL Image (255 inside the shape), or None for 'none'

    Raises:
        ValueError: If shape is unknown
    """
    if shape == SHAPE_NONE:
        return None
    if shape not in (SHAPE_CIRCLE, SHAPE_ROUNDED_SQUARE):
        raise ValueError(f"Unknown icon_shape: {shape}")

    big = target_size * SUPERSAMPLE_FACTOR
    mask = Image.new("L", (big, big), 0)
    _shape_outline(ImageDraw.Draw(mask), shape, big, fill=255)
    return mask.resize((target_size, target_size), Image.Resampling.BOX)


def build_border_mask(shape: str, target_size: int, width: float) -> Any:
    """
    Build the antialiased stroke mask for the border.

    The stroke lies inside the shape boundary, so clipping never cuts it.

    Args:
        shape: Icon shape whose boundary is stroked
        target_size: Mask dimension
        width: Stroke width in target pixels (may be fractional)

    Returns:
        'L' mode PIL Image (255 where the border is drawn)
    """
    big = target_size * SUPERSAMPLE_FACTOR
    stroke = max(1, int(round(width * SUPERSAMPLE_FACTOR)))
    mask = Image.new("L", (big, big), 0)
    _shape_outline(ImageDraw.Draw(mask), shape, big, outline=255, width=stroke)
    return mask.resize((target_size, target_size), Image.Resampling.BOX)


def _draw_source(canvas: Any, source: SourceImage, model: TransformModel, layout: IconLayout) -> None:
    """
    Draw the source through one translate + rotate + scale transform.

    The inverse mapping is handed to Pillow's affine transform so the source
    is resampled exactly once onto the canvas.
    """
    draw_w, draw_h = layout.image_size
    if draw_w <= 0 or draw_h <= 0:
        return

    image = source.image
    # Pre-reduce large downscales so the affine pass does not alias
    if draw_w < image.width and draw_h < image.height:
        reduced = (max(1, int(round(draw_w))), max(1, int(round(draw_h))))
        image = image.resize(reduced, Image.Resampling.LANCZOS)

    sx = draw_w / image.width
    sy = draw_h / image.height
    theta = math.radians(model.rotation)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    cx, cy = layout.center
    half_w = image.width / 2
    half_h = image.height / 2

    # output (x, y) -> source (a*x + b*y + c, d*x + e*y + f)
    a = cos_t / sx
    b = sin_t / sx
    c = half_w - (cos_t * cx + sin_t * cy) / sx
    d = -sin_t / sy
    e = cos_t / sy
    f = half_h - (-sin_t * cx + cos_t * cy) / sy

    size = (layout.target_size, layout.target_size)
    layer = image.transform(
        size,
        Image.Transform.AFFINE,
        data=(a, b, c, d, e, f),
        resample=Image.Resampling.BICUBIC,
        fillcolor=(0, 0, 0, 0),
    )
    canvas.alpha_composite(layer)


def _draw_placeholder(canvas: Any, layout: IconLayout) -> None:
    _draw_centered_text(
        canvas,
        PLACEHOLDER_TEXT,
        (layout.target_size / 2, layout.target_size / 2),
        PLACEHOLDER_FONT_SIZE * layout.scale_factor,
        PLACEHOLDER_TEXT_COLOR,
    )


def _draw_border(canvas: Any, model: TransformModel, layout: IconLayout) -> None:
    mask = build_border_mask(model.icon_shape, layout.target_size, layout.border_width)
    layer = Image.new("RGBA", canvas.size, tuple(model.border_color) + (0,))
    layer.putalpha(mask)
    canvas.alpha_composite(layer)


# ============================================================================
# Public API
# ============================================================================

def render_icon(
    source: Optional[SourceImage],
    model: TransformModel,
    target_size: int,
    reference_size: int = REFERENCE_CANVAS_SIZE,
    registry: Optional[FilterRegistry] = None,
) -> Any:
    """
    Composite the icon at one target size.

    A missing source renders the deterministic placeholder instead of raising.

    Args:
        source: Decoded source image, or None when nothing could be decoded
        model: Transform model (reference-size units)
        target_size: Output dimension in pixels
        reference_size: Reference canvas dimension the model is expressed in
        registry: Filter registry (default registry if None)

    Returns:
        RGBA PIL Image of target_size x target_size

    Raises:
        CrossOriginError: If a pixel filter must read back a tainted source
        ValueError: If sizes are not positive or the shape is unknown
    """
    layout = compute_layout(source.size if source else None, model, target_size, reference_size)

    canvas = Image.new("RGBA", (layout.target_size, layout.target_size), tuple(model.background_color) + (255,))

    try:
        layout.require_drawable()
    except DegenerateGeometryError as e:
        logger.warning(f"{e}; drawing background and border only")
    else:
        if source is not None:
            _draw_source(canvas, source, model, layout)
        else:
            _draw_placeholder(canvas, layout)

    if model.border_width > 0:
        _draw_border(canvas, model, layout)

    if model.filter_kind != FILTER_NONE:
        if source is not None and source.tainted:
            raise CrossOriginError(
                f"Cannot apply '{model.filter_kind}' filter: pixels of {source.origin} "
                f"may not be read back from this origin"
            )
        canvas = apply_filter(
            canvas,
            model.filter_kind,
            scale_factor=layout.scale_factor,
            blur_radius=model.blur_radius,
            registry=registry,
        )

    if model.text.enabled:
        _draw_centered_text(
            canvas,
            model.text.content,
            (
                layout.target_size / 2 + model.text.x_offset * layout.scale_factor,
                layout.target_size / 2 + model.text.y_offset * layout.scale_factor,
            ),
            model.text.font_size * layout.scale_factor,
            model.text.font_color,
        )

    mask = build_shape_mask(model.icon_shape, layout.target_size)
    if mask is not None:
        canvas.putalpha(ImageChops.multiply(canvas.getchannel("A"), mask))

    return canvas


def render_placeholder(
    model: Optional[TransformModel] = None,
    target_size: int = REFERENCE_CANVAS_SIZE,
    reference_size: int = REFERENCE_CANVAS_SIZE,
) -> Any:
    """Render the 'no image' canvas for a model (defaults if None)."""
    return render_icon(None, model or TransformModel(), target_size, reference_size)
