"""Tests for the photo compression service."""
import io
import logging
import pytest
from PIL import ExifTags, Image
from backend.config import Settings
from backend.services.image_compression import ImageCompressionService, normalizar_mime_type
from shared.utils import ImageProcessingError, calcular_dimensoes_limitadas


def _open(data):
    return Image.open(io.BytesIO(data))


class TestDimensoes:
    """Target size computation."""

    def test_landscape(self):
        assert calcular_dimensoes_limitadas(4000, 3000, 1920) == (1920, 1440)

    def test_portrait(self):
        assert calcular_dimensoes_limitadas(3000, 4000, 1920) == (1440, 1920)

    def test_no_upscaling(self):
        assert calcular_dimensoes_limitadas(800, 600, 1920) == (800, 600)

    def test_exactly_at_limit(self):
        assert calcular_dimensoes_limitadas(1920, 1080, 1920) == (1920, 1080)

    def test_extreme_ratio_keeps_one_pixel(self):
        assert calcular_dimensoes_limitadas(10000, 2, 1920) == (1920, 1)


class TestComprimir:
    """End-to-end compression with Pillow."""

    @pytest.fixture
    def service(self, settings):
        return ImageCompressionService(settings)

    def test_large_image_is_downscaled(self, service, large_jpeg):
        resultado = service.comprimir(large_jpeg, 'image/jpeg')
        assert (resultado.largura, resultado.altura) == (1920, 1440)
        assert resultado.mime_type == 'image/jpeg'
        with _open(resultado.buffer) as img:
            assert img.format == 'JPEG'
            assert img.size == (1920, 1440)

    def test_aspect_ratio_preserved(self, service, image_factory):
        resultado = service.comprimir(image_factory(3000, 2001), 'image/jpeg')
        assert resultado.largura == 1920
        assert abs(resultado.altura - round(2001 * 1920 / 3000)) <= 1

    def test_portrait_longer_side_is_height(self, service, image_factory):
        resultado = service.comprimir(image_factory(1500, 2500), 'image/jpeg')
        assert resultado.altura == 1920
        assert resultado.largura == 1152

    def test_small_image_keeps_dimensions(self, service, small_jpeg):
        resultado = service.comprimir(small_jpeg, 'image/jpeg')
        assert (resultado.largura, resultado.altura) == (800, 600)

    @pytest.mark.parametrize("format,mode,mime", [
        ('PNG', 'RGBA', 'image/png'),
        ('PNG', 'L', 'image/png'),
        ('WEBP', 'RGB', 'image/webp'),
        ('GIF', 'RGB', 'image/gif'),
    ])
    def test_any_format_becomes_jpeg(self, service, image_factory, format, mode, mime):
        resultado = service.comprimir(image_factory(300, 200, format=format, mode=mode), mime)
        assert resultado.mime_type == 'image/jpeg'
        with _open(resultado.buffer) as img:
            assert img.format == 'JPEG'
            assert img.mode == 'RGB'

    def test_mime_hint_is_not_trusted(self, service, image_factory):
        resultado = service.comprimir(image_factory(100, 100, format='PNG'), 'application/octet-stream')
        assert resultado.mime_type == 'image/jpeg'

    def test_output_mime_ignores_environment(self, small_jpeg, monkeypatch):
        monkeypatch.setenv('AUDIT_MIME_TYPE_SAIDA', 'image/png')
        resultado = ImageCompressionService(Settings()).comprimir(small_jpeg, 'image/jpeg')
        assert resultado.mime_type == 'image/jpeg'
        assert resultado.buffer[:3] == b'\xff\xd8\xff'

    def test_orientation_is_applied(self, service, image_factory):
        exif = Image.Exif()
        exif[ExifTags.Base.Orientation] = 6  # rotate 90 CW
        resultado = service.comprimir(image_factory(400, 200, exif=exif), 'image/jpeg')
        assert (resultado.largura, resultado.altura) == (200, 400)

    def test_custom_limit(self, large_jpeg):
        service = ImageCompressionService(Settings(_env_file=None, lado_maximo_px=1000, qualidade_jpeg=60))
        resultado = service.comprimir(large_jpeg, 'image/jpeg')
        assert (resultado.largura, resultado.altura) == (1000, 750)

    def test_logs_before_and_after(self, service, large_jpeg, caplog):
        with caplog.at_level(logging.INFO, logger='backend.services.image_compression'):
            service.comprimir(large_jpeg, 'image/jpeg')
        assert '4000x3000 -> 1920x1440' in caplog.text

    def test_corrupted_data_raises(self, service, caplog):
        with pytest.raises(ImageProcessingError):
            service.comprimir(b'definitely not an image', 'image/jpeg')
        assert 'Failed to compress image (image/jpeg)' in caplog.text

    def test_truncated_image_raises(self, service, large_jpeg):
        with pytest.raises(ImageProcessingError):
            service.comprimir(large_jpeg[:2000], 'image/jpeg')

    def test_empty_data_raises(self, service):
        with pytest.raises(ImageProcessingError, match="empty"):
            service.comprimir(b'', 'image/jpeg')


class TestNormalizarMimeType:

    @pytest.mark.parametrize("entrada,esperado", [
        (None, 'image/jpeg'),
        ('', 'image/jpeg'),
        ('IMAGE/PNG', 'image/png'),
        ('text/plain', 'image/jpeg'),
    ])
    def test_normalization(self, entrada, esperado):
        assert normalizar_mime_type(entrada) == esperado
