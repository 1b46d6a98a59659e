import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from fire_detection_bot.core.errors import AppError

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = 'data:'


def validate_upload(image_bytes: bytes, max_bytes: int, content_type: str | None = None) -> bytes:
    if not image_bytes:
        raise AppError('MISSING_IMAGE', 'Missing image upload (field name: image).', status_code=400)
    if content_type and not content_type.lower().startswith('image/'):
        raise AppError(
            'INVALID_FILE_TYPE',
            'Please upload an image file (JPG, JPEG, PNG).',
            status_code=415,
            details={'content_type': content_type},
        )
    if len(image_bytes) > max_bytes:
        raise AppError('IMAGE_TOO_LARGE', f'Image too large. Max {max_bytes} bytes.', status_code=413)
    return image_bytes


def guess_mime_type(image_bytes: bytes) -> str:
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            fmt = image.format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return 'application/octet-stream'
    return Image.MIME.get(fmt or '', 'application/octet-stream')


def to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    mime = mime_type or guess_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode('ascii')
    return f'{DATA_URL_PREFIX}{mime};base64,{encoded}'


def is_data_url(value: str) -> bool:
    return value.startswith(DATA_URL_PREFIX)


def decode_data_url(data_url: str) -> bytes:
    header, sep, payload = data_url.partition(',')
    if not sep or not header.startswith(DATA_URL_PREFIX):
        raise ValueError('not a data URL')
    if header.endswith(';base64'):
        return base64.b64decode(payload, validate=False)
    return payload.encode('utf-8')


def load_image_from_bytes(image_bytes: bytes) -> Image.Image:
    image = Image.open(BytesIO(image_bytes))
    image.load()
    return image


def read_image_source(source) -> Image.Image | None:
    """Decode bytes, a data URL, a file path or a PIL image; ``None`` when undecodable."""
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, (bytes, bytearray)):
            return load_image_from_bytes(bytes(source))
        if isinstance(source, str):
            if is_data_url(source):
                return load_image_from_bytes(decode_data_url(source))
            path = Path(source)
            if path.is_file():
                return load_image_from_bytes(path.read_bytes())
            logger.warning('Image source is neither a data URL nor a readable file source=%.64s', source)
            return None
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, binascii.Error) as exc:
        logger.warning('Could not decode image: %s', exc)
        return None
    logger.warning('Unsupported image source type=%s', type(source).__name__)
    return None
