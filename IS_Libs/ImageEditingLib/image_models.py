"""
Image data models for Icon Studio.

This module defines the source image value and the colour helpers used
throughout the editing system.

Classes:
    SourceImage: Decoded source raster with its origin and identity

Functions:
    parse_color: Convert a hex string or tuple into an RGB tuple
    color_to_hex: Convert an RGB tuple into a '#rrggbb' string
    decode_source: Decode raw bytes into a SourceImage

Type Aliases:
    RgbColor: A tuple of 3 integers representing RGB color values (0-255)
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

import hashlib
import io
import logging
from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

from IS_Libs.errors import DecodeError
from IS_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)

RgbColor = Tuple[int, int, int]
RgbaColor = Tuple[int, int, int, int]
ColorLike = Union[str, Sequence[int]]


def parse_color(value: ColorLike) -> RgbColor:
    """
    Convert a colour given as '#rrggbb', '#rgb' or an RGB(A) sequence.

    Args:
        value: Hex string or sequence of 3-4 integers

    Returns:
        RGB tuple with every channel clamped to 0-255

    Raises:
        ValueError: If the value cannot be interpreted as a colour
    """
    if isinstance(value, str):
        text = value.strip().lstrip("#")
        if len(text) == 3:
            text = "".join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Invalid hex colour: {value!r}")
        try:
            return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
        except ValueError:
            raise ValueError(f"Invalid hex colour: {value!r}")

    channels = list(value)
    if len(channels) not in (3, 4):
        raise ValueError(f"Colour must have 3 or 4 channels, got {len(channels)}")
    r, g, b = (max(0, min(255, int(channel))) for channel in channels[:3])
    return (r, g, b)


def color_to_hex(color: Sequence[int]) -> str:
    r, g, b = parse_color(color)
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class SourceImage:
    """Decoded source raster.

    Attributes:
        image: RGBA PIL Image (never mutated after construction)
        origin: Where the image came from (path, URL or '<bytes>')
        key: Content digest used as the image identity
        tainted: True when pixel read-back is not permitted for this origin
    """
    image: Any
    origin: str
    key: str
    tainted: bool = False

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @classmethod
    def from_image(cls, image: Any, origin: str = "<memory>", tainted: bool = False) -> "SourceImage":
        """Wrap an already decoded PIL Image (used by tests and demos)."""
        if not hasattr(image, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        rgba = image.convert("RGBA")
        key = hashlib.sha1(rgba.tobytes()).hexdigest()
        return cls(image=rgba, origin=origin, key=key, tainted=tainted)


def decode_source(data: bytes, origin: str = "<bytes>", tainted: bool = False) -> SourceImage:
    """
    Decode raw bytes into a SourceImage.

    Animated formats contribute their first frame only.

    Args:
        data: Encoded image bytes
        origin: Description of where the bytes came from
        tainted: Whether the origin forbids pixel read-back

    Returns:
        SourceImage holding an RGBA copy of the decoded raster

    Raises:
        DecodeError: If the bytes are empty or not a decodable image
    """
    if not data:
        raise DecodeError(f"No image data received from {origin}")

    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.seek(0)
            rgba = opened.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode image from {origin}: {e}")

    if rgba.width <= 0 or rgba.height <= 0:
        raise DecodeError(f"Image from {origin} has no pixels")

    key = hashlib.sha1(data).hexdigest()
    logger.debug(f"Decoded {rgba.width}x{rgba.height} source from {origin}")
    return SourceImage(image=rgba, origin=origin, key=key, tainted=tainted)
