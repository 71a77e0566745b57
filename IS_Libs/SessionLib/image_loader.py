"""
Image source I/O.

Loads source images from local files, http(s) URLs and inline data: URLs.
Remote images fetched on behalf of a page origin are marked tainted when the
server does not grant that origin read access; tainted images can still be
drawn, but filters and exports refuse to read their pixels.

Functions:
    is_supported_format: Check a file extension against the supported formats
    load_image_file: Decode a local image file
    fetch_image_url: Download and decode an image from a URL
    load_image_source: Dispatch on the kind of reference (path, URL, data URL)
"""

from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote_to_bytes
import base64
import binascii
import logging

import requests

from IS_Libs.constants import SUPPORTED_STANDARD_IMAGES, URL_FETCH_TIMEOUT_SECONDS
from IS_Libs.errors import DecodeError, SourceUnavailableError
from IS_Libs.ImageEditingLib.image_models import SourceImage, decode_source

logger = logging.getLogger(__name__)

ALLOW_ORIGIN_HEADER = "Access-Control-Allow-Origin"


def is_supported_format(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


def load_image_file(path: Union[str, Path]) -> SourceImage:
    """
    Load a local image file.

    Raises:
        SourceUnavailableError: If the file does not exist or cannot be read
        DecodeError: If the file is not a decodable image
    """
    path = Path(path)
    if not path.is_file():
        raise SourceUnavailableError(f"Image file not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceUnavailableError(f"Could not read {path}: {e}")

    source = decode_source(data, origin=str(path))
    logger.info(f"Loaded {path} ({source.width}x{source.height})")
    return source


def decode_data_url(url: str) -> SourceImage:
    """
    Decode an inline data: URL.

    Raises:
        DecodeError: If the URL is malformed or the payload is not an image
    """
    header, sep, payload = url.partition(",")
    if not sep or not header.lower().startswith("data:"):
        raise DecodeError("Malformed data URL")

    if header.lower().endswith(";base64"):
        try:
            data = base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 payload in data URL: {e}")
    else:
        data = unquote_to_bytes(payload)

    return decode_source(data, origin="data:")


def _origin_allowed(response: requests.Response, request_origin: Optional[str]) -> bool:
    if request_origin is None:
        return True
    allowed = response.headers.get(ALLOW_ORIGIN_HEADER)
    return allowed == "*" or allowed == request_origin


def fetch_image_url(
    url: str,
    request_origin: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = URL_FETCH_TIMEOUT_SECONDS,
) -> SourceImage:
    """
    Fetch and decode an image from a URL.

    Args:
        url: http(s) or data: URL
        request_origin: Origin the image is requested on behalf of. When given,
            the response must allow it through Access-Control-Allow-Origin or
            the image is marked tainted.
        session: requests session to use (a plain requests.get if None)
        timeout: Request timeout in seconds

    Returns:
        SourceImage, possibly tainted

    Raises:
        SourceUnavailableError: If the request fails or returns an error status
        DecodeError: If the response body is not an image
    """
    if url.lower().startswith("data:"):
        return decode_data_url(url)

    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise SourceUnavailableError(f"Could not fetch {url}: {e}")

    tainted = not _origin_allowed(response, request_origin)
    if tainted:
        logger.warning(f"{url} does not allow reads from {request_origin}; image is display-only")

    source = decode_source(response.content, origin=url, tainted=tainted)
    logger.info(f"Fetched {url} ({source.width}x{source.height})")
    return source


def load_image_source(
    reference: str,
    request_origin: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> SourceImage:
    """Load a source from a file path, an http(s) URL or a data: URL."""
    lowered = reference.lower()
    if lowered.startswith(("http://", "https://", "data:")):
        return fetch_image_url(reference, request_origin=request_origin, session=session)
    return load_image_file(reference)
