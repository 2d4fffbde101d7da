"""Image handling for Plant Tracker photo observations."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from homeassistant.core import HomeAssistant

from .const import MAX_PHOTO_WIDTH, PHOTO_JPEG_QUALITY

_LOGGER = logging.getLogger(__name__)

DEFAULT_MIME = "application/octet-stream"
_DATA_URL_HEADER = re.compile(r"^data:([^;,]*)(;base64)?$")


def detect_mime(data: bytes) -> str:
    """Return the MIME type of image data, or a generic binary type."""
    try:
        with Image.open(BytesIO(data)) as image:
            return Image.MIME.get(image.format or "", DEFAULT_MIME)
    except (UnidentifiedImageError, OSError, ValueError):
        return DEFAULT_MIME


def to_data_url(data: bytes, mime: str | None = None) -> str:
    """Encode data as a self-describing base64 data URL."""
    mime = mime or detect_mime(data)
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_url(value: str) -> bytes:
    """Decode a base64 data URL (or a bare base64 string) into bytes.

    Raises:
        ValueError: If the value is not valid base64 data.
    """
    if not isinstance(value, str):
        raise ValueError("Image data must be a string")

    payload = value
    if "," in value:
        header, payload = value.split(",", 1)
        match = _DATA_URL_HEADER.match(header.strip())
        if not match or not match.group(2):
            raise ValueError("Unsupported data URL header")

    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"Invalid base64 image data: {err}") from err
    if not data:
        raise ValueError("Empty image data")
    return data


class ImageManager:
    """Prepares captured photos before they are stored."""

    def __init__(self, hass: HomeAssistant, max_width: int = MAX_PHOTO_WIDTH) -> None:
        """Initialize the ImageManager.

        Args:
            hass: Home Assistant instance.
            max_width: Photos wider than this are scaled down.
        """
        self.hass = hass
        self.max_width = max_width

    async def async_prepare_photo(self, image_base64: str) -> bytes:
        """Decode a base64 photo and return it as an optimized JPEG.

        Args:
            image_base64: The base64 encoded image, with or without a data URL header.

        Returns:
            The JPEG bytes to store.
        """
        return await self.hass.async_add_executor_job(
            self._prepare_photo_sync, image_base64
        )

    def _prepare_photo_sync(self, image_base64: str) -> bytes:
        """Synchronous helper to resize and re-encode the photo."""
        try:
            image_data = from_data_url(image_base64)
            image = Image.open(BytesIO(image_data))

            # Convert to RGB if necessary
            if image.mode != "RGB":
                image = image.convert("RGB")

            if image.width > self.max_width:
                height = max(1, round(image.height * self.max_width / image.width))
                image = image.resize((self.max_width, height))

            output = BytesIO()
            image.save(output, "JPEG", quality=PHOTO_JPEG_QUALITY, optimize=True)
            return output.getvalue()

        except (UnidentifiedImageError, OSError, ValueError) as e:
            _LOGGER.error("Error preparing photo: %s", e)
            raise ValueError(f"Invalid photo: {e}") from e
