"""Extraction of EXIF metadata from audit photos as JSON-safe documents.

Metadata is best effort: any failure yields ``None`` and never blocks the upload.
"""
import enum
import logging
import math
import numbers
import re
from collections.abc import Mapping
from datetime import date, datetime

from PIL import ExifTags

from shared.utils import abrir_imagem

logger = logging.getLogger(__name__)

# C0 controls rejected by text/JSON columns; tab, LF and CR are kept
CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')

EXIF_DATE_FORMAT = '%Y:%m:%d %H:%M:%S'
DATE_TAGS = ('DateTime', 'DateTimeOriginal', 'DateTimeDigitized')

# Offsets to sub-IFDs; their content is read through get_ifd instead
IFD_POINTER_TAGS = {
    ExifTags.Base.ExifOffset,
    ExifTags.Base.GPSInfo,
    ExifTags.Base.ExifInteroperabilityOffset,
}

# Returned by a sanitizer when the value must not be stored at all
_DESCARTAR = object()


class TipoValorExif(enum.Enum):
    """Closed set of value kinds found in a parsed metadata tree."""
    NULO = "nulo"
    ESCALAR = "escalar"
    TEXTO = "texto"
    BINARIO = "binario"
    LISTA = "lista"
    DATA = "data"
    OBJETO = "objeto"
    DESCONHECIDO = "desconhecido"


def classificar_valor(valor):
    """Return the TipoValorExif of a metadata value."""
    if valor is None:
        return TipoValorExif.NULO
    if isinstance(valor, (bytes, bytearray, memoryview)):
        return TipoValorExif.BINARIO
    if isinstance(valor, str):
        return TipoValorExif.TEXTO
    if isinstance(valor, (datetime, date)):
        return TipoValorExif.DATA
    # bool is an int; IFDRational is a numbers.Rational
    if isinstance(valor, numbers.Real):
        return TipoValorExif.ESCALAR
    if isinstance(valor, Mapping):
        return TipoValorExif.OBJETO
    if isinstance(valor, (list, tuple)):
        return TipoValorExif.LISTA
    return TipoValorExif.DESCONHECIDO


def _sanitizar_escalar(valor):
    if isinstance(valor, (bool, int)):
        return valor
    try:
        numero = float(valor)
    except (ZeroDivisionError, OverflowError, ValueError):
        return _DESCARTAR
    if math.isnan(numero) or math.isinf(numero):
        return _DESCARTAR
    return numero


def _sanitizar_texto(valor):
    return CONTROL_CHARS_PATTERN.sub('', valor)


def _sanitizar_data(valor):
    return valor.isoformat()


def _sanitizar_lista(valor):
    saida = []
    for elemento in valor:
        if classificar_valor(elemento) == TipoValorExif.BINARIO:
            continue
        limpo = sanitizar_valor(elemento)
        if limpo is not _DESCARTAR:
            saida.append(limpo)
    return saida


def sanitizar_objeto(obj):
    """Sanitize a metadata mapping into a JSON-safe dict.

    Null values, binary values and values of unknown kind are dropped.
    """
    saida = {}
    for chave, valor in obj.items():
        if classificar_valor(valor) == TipoValorExif.NULO:
            continue
        limpo = sanitizar_valor(valor)
        if limpo is not _DESCARTAR:
            saida[_sanitizar_texto(str(chave))] = limpo
    return saida


SANITIZADORES = {
    TipoValorExif.NULO: lambda valor: None,
    TipoValorExif.ESCALAR: _sanitizar_escalar,
    TipoValorExif.TEXTO: _sanitizar_texto,
    TipoValorExif.BINARIO: lambda valor: _DESCARTAR,
    TipoValorExif.LISTA: _sanitizar_lista,
    TipoValorExif.DATA: _sanitizar_data,
    TipoValorExif.OBJETO: sanitizar_objeto,
    TipoValorExif.DESCONHECIDO: lambda valor: _DESCARTAR,
}


def sanitizar_valor(valor):
    """Apply the sanitization rule of the value's kind."""
    return SANITIZADORES[classificar_valor(valor)](valor)


def _reviver_data(valor):
    """Turn an EXIF ``YYYY:MM:DD HH:MM:SS`` string into a datetime when possible."""
    if not isinstance(valor, str):
        return valor
    try:
        return datetime.strptime(valor.strip('\x00 '), EXIF_DATE_FORMAT)
    except ValueError:
        return valor


def _nomear_tags(ifd, nomes):
    bloco = {}
    for tag_id, valor in ifd.items():
        if tag_id in IFD_POINTER_TAGS:
            continue
        nome = nomes.get(tag_id, str(tag_id))
        bloco[nome] = _reviver_data(valor) if nome in DATE_TAGS else valor
    return bloco


def _ler_ifd(exif, ifd):
    # Pillow raises KeyError for a sub-IFD whose pointer is absent (Interop usually is)
    try:
        return exif.get_ifd(ifd)
    except KeyError:
        return {}


def _ler_xmp(img):
    """Parsed XMP packet of the image, empty when absent or unreadable."""
    getxmp = getattr(img, 'getxmp', None)
    if getxmp is None:
        return {}
    try:
        return getxmp()
    except (SyntaxError, ValueError) as e:
        logger.debug(f"Ignoring unreadable XMP packet: {e}")
        return {}


def ler_metadados(buffer):
    """Parse the raw metadata tree of an image.

    IFD0 and the Exif sub-IFD are merged at the top level; GPS, Interop, the
    thumbnail IFD and the XMP packet become nested blocks. Missing blocks are
    skipped.

    Returns:
        dict: Tag name -> raw Pillow value (empty when the image has no metadata)
    """
    metadados = {}
    blocos = {}
    with abrir_imagem(buffer) as img:
        exif = img.getexif()
        if exif:
            metadados.update(_nomear_tags(exif, ExifTags.TAGS))
            metadados.update(_nomear_tags(_ler_ifd(exif, ExifTags.IFD.Exif), ExifTags.TAGS))
            blocos['GPSInfo'] = _nomear_tags(_ler_ifd(exif, ExifTags.IFD.GPSInfo), ExifTags.GPSTAGS)
            blocos['Interop'] = _nomear_tags(_ler_ifd(exif, ExifTags.IFD.Interop), ExifTags.TAGS)
            blocos['Thumbnail'] = _nomear_tags(_ler_ifd(exif, ExifTags.IFD.IFD1), ExifTags.TAGS)
        blocos['XMP'] = _ler_xmp(img)

    for nome, bloco in blocos.items():
        if bloco:
            metadados[nome] = bloco
    return metadados


def _graus_decimais(componentes, referencia):
    if not isinstance(componentes, list) or not componentes:
        return None
    if not all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in componentes):
        return None
    partes = list(componentes) + [0, 0]
    graus = partes[0] + partes[1] / 60 + partes[2] / 3600
    if isinstance(referencia, str) and referencia.strip().upper() in ('S', 'W'):
        graus = -graus
    return graus


def coordenadas_gps(exif):
    """Decimal (latitude, longitude) from a sanitized EXIF document, or None."""
    if not exif:
        return None
    gps = exif.get('GPSInfo')
    if not isinstance(gps, dict):
        return None
    latitude = _graus_decimais(gps.get('GPSLatitude'), gps.get('GPSLatitudeRef'))
    longitude = _graus_decimais(gps.get('GPSLongitude'), gps.get('GPSLongitudeRef'))
    if latitude is None or longitude is None:
        return None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        logger.debug(f"Discarding out-of-range GPS coordinates: {latitude}, {longitude}")
        return None
    return latitude, longitude


class ExifExtractionService:
    """Extract EXIF from uploaded photos for the audit trail."""

    def extrair(self, buffer):
        """Extract and sanitize EXIF from image bytes.

        Returns:
            dict or None: JSON-safe mapping, or None when there is no usable metadata
        """
        try:
            metadados = ler_metadados(buffer)
            if not metadados or not isinstance(metadados, Mapping):
                return None
            sanitizado = sanitizar_objeto(metadados)
            if not sanitizado:
                return None
            return sanitizado
        except Exception as e:
            logger.debug(f"EXIF not found or could not be extracted: {e}")
            return None
