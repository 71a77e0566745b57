"""
Single import point for the Pillow modules used by the renderer.

The compositor relies on Image.Resampling / Image.Transform and on
ImageFont.load_default(size=...), which only exist from Pillow 10.1 on. The
version is checked once here so an old installation fails at import time
with a clear message instead of mid-render.
"""
from importlib import import_module
from typing import Tuple

MIN_PILLOW_VERSION: Tuple[int, int] = (10, 1)


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts = []
    for piece in version.split(".")[:2]:
        digits = "".join(ch for ch in piece if ch.isdigit())
        parts.append(int(digits or 0))
    return tuple(parts)


try:
    _pil = import_module("PIL")
except ImportError as e:
    raise ImportError("pillow (PIL) is required: install with 'pip install Pillow'") from e

PILLOW_VERSION = getattr(_pil, "__version__", "0")
if _version_tuple(PILLOW_VERSION) < MIN_PILLOW_VERSION:
    raise ImportError(
        f"Pillow {PILLOW_VERSION} is too old; Icon Studio needs "
        f"{MIN_PILLOW_VERSION[0]}.{MIN_PILLOW_VERSION[1]} or newer"
    )

Image = import_module("PIL.Image")
ImageChops = import_module("PIL.ImageChops")
ImageDraw = import_module("PIL.ImageDraw")
ImageFilter = import_module("PIL.ImageFilter")
ImageFont = import_module("PIL.ImageFont")
