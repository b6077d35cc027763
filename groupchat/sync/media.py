"""Image selection for image messages."""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import Any

from PIL import Image, UnidentifiedImageError

from groupchat.constants import (
    IMAGE_JPEG_QUALITY,
    IMAGE_MAX_HEIGHT,
    IMAGE_MAX_WIDTH,
)
from groupchat.errors import ValidationError


@dataclass(frozen=True)
class PickedImage:
    """A selected image, ready to be sent inline."""

    payload: str
    mime_type: str


def pick_image(file: Any) -> PickedImage | None:
    """Downsize an uploaded image and encode it as base64.

    Returns None when nothing was selected. PNG images stay PNG; everything
    else is re-encoded as JPEG.
    """
    if file is None or not getattr(file, "filename", None):
        return None

    raw = file.read()
    if not raw:
        return None

    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("The selected file is not an image.") from e

    source_format = img.format
    img.thumbnail((IMAGE_MAX_WIDTH, IMAGE_MAX_HEIGHT))

    out = io.BytesIO()
    if source_format == "PNG":
        img.save(out, format="PNG")
        mime_type = "image/png"
    else:
        if img.mode != "RGB":
            img = img.convert("RGB")
        img.save(out, format="JPEG", quality=IMAGE_JPEG_QUALITY)
        mime_type = "image/jpeg"

    return PickedImage(
        payload=base64.b64encode(out.getvalue()).decode("ascii"),
        mime_type=mime_type,
    )
