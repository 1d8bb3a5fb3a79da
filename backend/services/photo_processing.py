"""Photo pipeline run on every audit photo upload.

EXIF is read from the original bytes (the re-encode drops it), then the photo
is compressed and hashed. The result is handed to the storage layer.
"""
import concurrent.futures
import logging

from shared.schemas import FotoProcessada
from shared.utils import ImageProcessingError, compute_photo_hash
from ..config import get_settings
from .exif_extraction import ExifExtractionService, coordenadas_gps
from .image_compression import ImageCompressionService

logger = logging.getLogger(__name__)


class PhotoProcessingService:
    """Compress photos and collect their metadata off the caller's thread."""

    def __init__(self, settings=None, compressor=None, exif_extractor=None, executor=None):
        self.settings = settings or get_settings()
        self.compressor = compressor or ImageCompressionService(self.settings)
        self.exif_extractor = exif_extractor or ExifExtractionService()
        self._owns_executor = executor is None
        self.executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=self.settings.photo_workers,
            thread_name_prefix='photo-worker'
        )

    def close(self):
        """Shut down the worker pool if this service created it."""
        if self._owns_executor:
            self.executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _processar(self, buffer, mime_type, nome_original):
        exif = self.exif_extractor.extrair(buffer)
        resultado = self.compressor.comprimir(buffer, mime_type)

        latitude = longitude = None
        coordenadas = coordenadas_gps(exif)
        if coordenadas:
            latitude, longitude = coordenadas

        return FotoProcessada(
            buffer=resultado.buffer,
            mime_type=resultado.mime_type,
            largura=resultado.largura,
            altura=resultado.altura,
            hash_value=compute_photo_hash(resultado.buffer),
            size_bytes=len(resultado.buffer),
            tamanho_original=len(buffer),
            nome_original=nome_original,
            exif=exif,
            latitude=latitude,
            longitude=longitude,
        )

    def submeter(self, buffer, mime_type=None, nome_original=None):
        """Schedule one photo on the worker pool.

        Returns:
            concurrent.futures.Future: Resolves to FotoProcessada or raises ImageProcessingError
        """
        return self.executor.submit(self._processar, buffer, mime_type, nome_original)

    def processar(self, buffer, mime_type=None, nome_original=None):
        """Process one photo, blocking until it is done.

        Raises:
            ImageProcessingError: If the photo cannot be compressed
        """
        return self.submeter(buffer, mime_type, nome_original).result()

    def processar_em_lote(self, uploads):
        """Process several uploads independently.

        Args:
            uploads: Iterable of (buffer, mime_type, nome_original) tuples

        Returns:
            list: FotoProcessada or ImageProcessingError per upload, in input order
        """
        futures = [self.submeter(*upload) for upload in uploads]
        resultados = []
        for indice, future in enumerate(futures):
            try:
                resultados.append(future.result())
            except ImageProcessingError as e:
                logger.warning(f"Photo {indice} of batch rejected: {e}")
                resultados.append(e)
        falhas = sum(1 for r in resultados if isinstance(r, ImageProcessingError))
        logger.info(f"Processed batch of {len(resultados)} photos ({falhas} rejected)")
        return resultados
