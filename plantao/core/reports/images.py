"""
Image decoding for the Word and PDF renderers.

Uploads arrive in whatever format the browser accepted; both python-docx
and reportlab are fed normalised PNG bytes so that one undecodable upload
fails here, as an ImageDecodeError, and nowhere else.
"""
import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from plantao.utils import ImageDecodeError


@dataclass(frozen=True)
class DecodedImage:
    png: bytes
    width: int
    height: int

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height else 1.0


def decode_image(data: bytes, image_id: str = "") -> DecodedImage:
    """
    Decode raw image bytes and re-encode them as PNG.

    Raises:
        ImageDecodeError: if the bytes are empty or not a readable image
    """
    if not data:
        raise ImageDecodeError("Image has no data", image_id=image_id)
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode not in ("RGB", "RGBA", "L", "LA"):
                img = img.convert("RGBA")
            buffer = io.BytesIO()
            img.save(buffer, format="PNG")
            width, height = img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}", image_id=image_id) from e
    return DecodedImage(png=buffer.getvalue(), width=width, height=height)


def fit_within(image: DecodedImage, max_width: float, max_height: float):
    """Largest (width, height) with the image's aspect ratio inside the box."""
    width = max_width
    height = width / image.aspect
    if height > max_height:
        height = max_height
        width = height * image.aspect
    return width, height
