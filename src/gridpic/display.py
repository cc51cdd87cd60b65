import base64
import binascii
from io import BytesIO

from gridpic.errors import DecodeError, EncodeError
from gridpic.raster import RasterImage, decode_image

DATA_URL_PREFIX = "data:image/png;base64,"


def encode_png(raster: RasterImage) -> bytes:
    """Losslessly re-encode a raster as PNG."""
    buf = BytesIO()
    try:
        raster.to_pil().save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode original image: {e}") from e
    return buf.getvalue()


def to_data_url(raster: RasterImage) -> str:
    return DATA_URL_PREFIX + base64.b64encode(encode_png(raster)).decode("ascii")


def from_data_url(url: str) -> RasterImage:
    """Decode a PNG data URL produced by to_data_url back into a raster."""
    if not url.startswith(DATA_URL_PREFIX):
        raise DecodeError(f"Not a PNG data URL: {url[:32]!r}")
    try:
        data = base64.b64decode(url[len(DATA_URL_PREFIX) :], validate=True)
    except binascii.Error as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e
    return decode_image(data)
