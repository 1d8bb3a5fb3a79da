"""Compression of audit photos before they are stored."""
import io
import logging

from PIL import Image, ImageOps

from shared.schemas import ResultadoCompressao
from shared.utils import ImageProcessingError, abrir_imagem, calcular_dimensoes_limitadas, handle_image_errors
from ..config import get_settings

logger = logging.getLogger(__name__)

FORMATO_SAIDA = 'JPEG'
MIME_TYPE_SAIDA = 'image/jpeg'


def normalizar_mime_type(mime_type):
    """Lower-case image mime type, ``image/jpeg`` when missing or not an image type."""
    if not mime_type:
        return 'image/jpeg'
    lower = mime_type.lower()
    if lower.startswith('image/'):
        return lower
    return 'image/jpeg'


class ImageCompressionService:
    """Resize and re-encode uploaded photos to bound their size.

    Photos whose longer side exceeds ``lado_maximo_px`` are scaled down keeping
    the aspect ratio; smaller photos keep their dimensions. Every photo is
    re-encoded as JPEG regardless of the input format.
    """

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self.lado_maximo = self.settings.lado_maximo_px
        self.qualidade = self.settings.qualidade_jpeg

    def comprimir(self, buffer, mime_type_entrada=None):
        """Compress one photo.

        Args:
            buffer (bytes): Raw uploaded image
            mime_type_entrada (str): Mime type declared by the uploader, only used in logs

        Returns:
            ResultadoCompressao: Encoded bytes, output mime type and final dimensions

        Raises:
            ImageProcessingError: If the dimensions cannot be read or the codec fails
        """
        formato_entrada = normalizar_mime_type(mime_type_entrada)
        try:
            return self._comprimir(buffer)
        except ImageProcessingError as e:
            logger.warning(f"Failed to compress image ({formato_entrada}): {e}")
            raise

    @handle_image_errors("image compression")
    def _comprimir(self, buffer):
        if not buffer:
            raise ImageProcessingError("Image data is empty")

        with abrir_imagem(buffer) as original:
            largura, altura = original.size
            if not largura or not altura:
                raise ImageProcessingError("Image dimensions could not be read")

            # Camera rotation lives in EXIF, which the re-encode drops
            img = ImageOps.exif_transpose(original)
            largura_orientada, altura_orientada = img.size

            destino = calcular_dimensoes_limitadas(largura_orientada, altura_orientada, self.lado_maximo)
            if destino != img.size:
                img = img.resize(destino, Image.Resampling.LANCZOS)

            if img.mode != 'RGB':
                img = img.convert('RGB')

            output = io.BytesIO()
            img.save(output, format=FORMATO_SAIDA, quality=self.qualidade, optimize=True, progressive=True)
            data = output.getvalue()

        logger.info(
            f"Image compressed: {largura}x{altura} -> {img.width}x{img.height}, "
            f"{len(buffer)} -> {len(data)} bytes"
        )
        return ResultadoCompressao(
            buffer=data,
            mime_type=MIME_TYPE_SAIDA,
            largura=img.width,
            altura=img.height,
        )
