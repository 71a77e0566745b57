"""
ImageEditingLib - Icon compositing and pixel operations

This module provides the transform model, source image handling, the pixel
filter engine and the compositor used for both preview and export.
"""

from IS_Libs.ImageEditingLib.compositor import (
    IconLayout,
    build_shape_mask,
    compute_layout,
    render_icon,
    render_placeholder,
)
from IS_Libs.ImageEditingLib.image_models import SourceImage, color_to_hex, decode_source, parse_color
from IS_Libs.ImageEditingLib.pixel_filters import (
    FilterRegistry,
    apply_filter,
    blur,
    get_default_registry,
    grayscale,
    invert,
    register_blur_backend,
    sepia,
    set_blur_backend,
    sharpen,
)
from IS_Libs.ImageEditingLib.transform_model import (
    TextOverlay,
    TransformModel,
    fit_scale,
    validate_transform_changes,
)

__all__ = [
    "FilterRegistry",
    "IconLayout",
    "SourceImage",
    "TextOverlay",
    "TransformModel",
    "apply_filter",
    "blur",
    "build_shape_mask",
    "color_to_hex",
    "compute_layout",
    "decode_source",
    "fit_scale",
    "get_default_registry",
    "grayscale",
    "invert",
    "parse_color",
    "register_blur_backend",
    "render_icon",
    "render_placeholder",
    "sepia",
    "set_blur_backend",
    "sharpen",
    "validate_transform_changes",
]
