from io import BytesIO

from PIL import Image, ImageOps

from errors import SizeUnsatisfiable, TranscodeError
from logger import logger
from platforms.base import IMAGE, NormalizedMedia
import config

ALLOWED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
}

# JPEG qualities tried in order; the last entry is the floor
QUALITY_LADDER = (90, 80, 70, 60, 50, 40, 30, 20, 10)


def _open(data):
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise TranscodeError(f"Unreadable image: {e}") from e
    return img


def _prepare_for_jpeg(img):
    img = ImageOps.exif_transpose(img)
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img


def encode_jpeg(img, quality):
    buf = BytesIO()
    img.save(buf, "JPEG", quality=quality, optimize=True)
    return buf.getvalue()


class ImageNormalizer:
    """Bring an image under the destination size limit as JPEG or PNG.

    Images in other formats are always re-encoded to JPEG since the
    destination refuses them. Oversized images walk down ``qualities``
    until one encode fits; if the floor is still too big the image is
    given up on with SizeUnsatisfiable.
    """

    def __init__(self, max_bytes=None, qualities=QUALITY_LADDER):
        self.max_bytes = max_bytes or config.BLUESKY_MAX_IMAGE_SIZE
        self.qualities = tuple(qualities)
        if not self.qualities:
            raise ValueError("Quality ladder must not be empty")

    def _media(self, data, mime_type, alt_text):
        return NormalizedMedia(
            kind=IMAGE,
            data=data,
            mime_type=mime_type,
            max_bytes=self.max_bytes,
            alt_text=alt_text,
        )

    def normalize(self, buffer, alt_text=""):
        img = _open(buffer.data)
        fmt = (img.format or "").upper()
        attempts = iter(self.qualities)

        if fmt in ALLOWED_FORMATS:
            data = buffer.data
            mime_type = ALLOWED_FORMATS[fmt]
        else:
            quality = next(attempts)
            logger.debug(f"Re-encoding {fmt or 'unknown'} image as JPEG (quality {quality})")
            img = _prepare_for_jpeg(img)
            data = encode_jpeg(img, quality)
            mime_type = "image/jpeg"

        if len(data) <= self.max_bytes:
            return self._media(data, mime_type, alt_text)

        img = _prepare_for_jpeg(img)
        for quality in attempts:
            data = encode_jpeg(img, quality)
            if len(data) <= self.max_bytes:
                logger.debug(f"Image compressed to {len(data)} bytes at quality {quality}")
                return self._media(data, "image/jpeg", alt_text)

        raise SizeUnsatisfiable(
            f"Image still {len(data)} bytes at quality floor "
            f"{self.qualities[-1]} (limit {self.max_bytes})"
        )
