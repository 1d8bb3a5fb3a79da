"""Pytest configuration and fixtures for audit scoring and photo tests."""
import io
import pytest
from PIL import ExifTags, Image
from PIL.TiffImagePlugin import IFDRational
from backend.config import Settings


def make_image_bytes(width, height, format='JPEG', mode='RGB', exif=None, color=(120, 160, 90)):
    """Encode a solid-color image of the given size."""
    if mode == 'RGBA':
        color = color + (128,)
    elif mode == 'L':
        color = color[0]
    img = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    kwargs = {'exif': exif} if exif is not None else {}
    img.save(buffer, format=format, **kwargs)
    return buffer.getvalue()


@pytest.fixture
def settings():
    """Default settings, unaffected by the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def default_template_item():
    """Template item using the default answer set and no score configuration."""
    return {
        'pergunta': 'Os manipuladores utilizam uniforme limpo?',
        'opcoesRespostaConfig': [],
        'usarRespostasPersonalizadas': False,
        'peso': 1,
    }


@pytest.fixture
def exif_with_gps():
    """EXIF block carrying camera info, a capture date, GPS and a NUL-laden description."""
    exif = Image.Exif()
    exif[ExifTags.Base.Make] = 'Canon'
    exif[ExifTags.Base.Model] = 'EOS 80D'
    exif[ExifTags.Base.DateTime] = '2024:01:15 10:30:00'
    exif[ExifTags.Base.ImageDescription] = 'Cozinha\x00 industrial\x01'
    exif[ExifTags.IFD.GPSInfo] = {
        ExifTags.GPS.GPSLatitudeRef: 'S',
        ExifTags.GPS.GPSLatitude: (IFDRational(23), IFDRational(33), IFDRational(0)),
        ExifTags.GPS.GPSLongitudeRef: 'W',
        ExifTags.GPS.GPSLongitude: (IFDRational(46), IFDRational(38), IFDRational(0)),
    }
    return exif


@pytest.fixture
def jpeg_with_exif(exif_with_gps):
    return make_image_bytes(640, 480, exif=exif_with_gps)


@pytest.fixture
def large_jpeg():
    return make_image_bytes(4000, 3000)


@pytest.fixture
def small_jpeg():
    return make_image_bytes(800, 600)


@pytest.fixture
def image_factory():
    """Factory producing encoded images: image_factory(width, height, format=..., mode=...)."""
    return make_image_bytes
