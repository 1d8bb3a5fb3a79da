"""Shared utility functions for the audit application.

This module contains image helpers used by the photo services and by any
client that needs to predict how an uploaded photo will be stored.
"""

import hashlib
import io
import logging
from datetime import datetime
from functools import lru_cache, wraps
from zoneinfo import ZoneInfo

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Audits are carried out in Brazil; timestamps produced by the services use this zone.
APP_TIMEZONE = ZoneInfo('America/Sao_Paulo')

# Photo hash algorithm constant - always SHA256
PHOTO_HASH_ALGO = 'sha256'


def now():
    """Return current datetime in application timezone (timezone-aware)."""
    return datetime.now(APP_TIMEZONE)


class ImageProcessingError(Exception):
    """Raised when an image cannot be decoded, measured or re-encoded."""
    pass


def handle_image_errors(operation):
    """Decorator factory converting Pillow/codec failures into ImageProcessingError.

    The first positional argument after ``self`` (or the ``buffer`` keyword) is
    assumed to be the raw image bytes, and is only used to enrich the log line.
    ImageProcessingError raised inside the wrapped function passes through untouched.

    Args:
        operation (str): Human-readable name of the operation, used in messages.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            buffer = kwargs.get('buffer')
            if buffer is None:
                buffer = next((a for a in args if isinstance(a, (bytes, bytearray))), None)

            def log_and_raise(msg, exc):
                size = len(buffer) if buffer else 0
                logger.error(f"{msg} during {operation} - image data (size: {size} bytes): {exc}", exc_info=True)
                raise ImageProcessingError(f"{msg}: {exc}") from exc

            try:
                return func(*args, **kwargs)
            except ImageProcessingError:
                raise
            except UnidentifiedImageError as e:
                log_and_raise("Corrupted or unsupported image format", e)
            except Image.DecompressionBombError as e:
                log_and_raise("Image exceeds the decompression safety limit", e)
            except (OSError, ValueError) as e:
                log_and_raise("Error processing image", e)

        return wrapper
    return decorator


def compute_photo_hash(image_data):
    """Compute the SHA256 hex digest of photo bytes for integrity checks.

    Args:
        image_data: Raw bytes or a file-like object opened in binary mode

    Returns:
        str: Hexadecimal hash string (64 characters)

    Raises:
        TypeError: If input is neither bytes nor a readable stream
    """
    hasher = hashlib.new(PHOTO_HASH_ALGO)
    if isinstance(image_data, (bytes, bytearray)):
        hasher.update(image_data)
    elif hasattr(image_data, 'read'):
        while chunk := image_data.read(8192):
            hasher.update(chunk)
    else:
        raise TypeError(f"compute_photo_hash expected bytes or file-like object, got {type(image_data).__name__}")
    return hasher.hexdigest()


@lru_cache(maxsize=128)
def calcular_dimensoes_limitadas(largura, altura, lado_maximo):
    """Calculate dimensions that fit ``lado_maximo`` keeping the aspect ratio.

    Never upscales. The longer side lands exactly on ``lado_maximo`` and the
    shorter side is rounded to the nearest pixel (at least 1).

    Args:
        largura (int): Original width
        altura (int): Original height
        lado_maximo (int): Maximum length of the longer side

    Returns:
        tuple: (width, height)
    """
    if largura <= lado_maximo and altura <= lado_maximo:
        return (largura, altura)

    if largura >= altura:
        return (lado_maximo, max(1, round(altura * lado_maximo / largura)))
    return (max(1, round(largura * lado_maximo / altura)), lado_maximo)


def abrir_imagem(buffer):
    """Open raw bytes as a Pillow image without decoding pixel data yet."""
    return Image.open(io.BytesIO(buffer))
