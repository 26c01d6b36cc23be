"""
ImageUploadService - Subida de imágenes de perfil a un CDN externo.

El archivo se sube directamente al endpoint del CDN (upload sin firma con
preset); el dashboard solo conserva la URL devuelta como valor opaco para
guardarla en el recurso de perfil.
"""

import logging
import mimetypes
import os
from typing import Optional

import httpx

from gymdash.core.config import get_settings
from gymdash.core.exceptions import TransientError, ValidationError

logger = logging.getLogger("image_upload_service")

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


class ImageUploadService:
    """
    Servicio async para subir imágenes al CDN.

    Args:
        upload_url: Endpoint de subida (por defecto CDN_UPLOAD_URL)
        upload_preset: Preset sin firma (por defecto CDN_UPLOAD_PRESET)
        transport: Transporte httpx opcional (tests)
    """

    def __init__(
        self,
        upload_url: Optional[str] = None,
        upload_preset: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        self.upload_url = upload_url or settings.CDN_UPLOAD_URL
        self.upload_preset = upload_preset or settings.CDN_UPLOAD_PRESET
        self.max_bytes = settings.MAX_PROFILE_IMAGE_BYTES
        self.timeout = settings.REQUEST_TIMEOUT_SECONDS
        self.transport = transport

        if not self.upload_url:
            logger.warning("CDN_UPLOAD_URL no configurado - la subida de imágenes estará deshabilitada")

    @property
    def enabled(self) -> bool:
        return bool(self.upload_url)

    def _validate(self, filename: str, content: bytes) -> str:
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"Tipo de archivo no permitido: {content_type}", field="image")
        if len(content) > self.max_bytes:
            raise ValidationError(
                f"La imagen supera el máximo de {self.max_bytes // (1024 * 1024)}MB",
                field="image"
            )
        return content_type

    async def upload_image(self, filename: str, content: bytes) -> str:
        """
        Sube una imagen y devuelve su URL pública.

        Args:
            filename: Nombre original del archivo
            content: Bytes de la imagen

        Returns:
            str: URL devuelta por el CDN (secure_url o url)

        Raises:
            ValidationError: Tipo o tamaño no válido, o CDN no configurado
            TransientError: El CDN no responde o devuelve error
        """
        if not self.enabled:
            raise ValidationError("La subida de imágenes no está configurada", field="image")
        content_type = self._validate(filename, content)

        files = {"file": (os.path.basename(filename), content, content_type)}
        data = {"upload_preset": self.upload_preset} if self.upload_preset else {}

        logger.info(f"Subiendo imagen {filename} ({len(content)} bytes) al CDN")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.upload_url, files=files, data=data)
        except httpx.RequestError as e:
            logger.error(f"Error de red subiendo imagen: {e}")
            raise TransientError("No se pudo conectar con el servicio de imágenes") from e

        if response.status_code != 200:
            logger.error(f"CDN error: {response.status_code} - {response.text[:200]}")
            raise TransientError(f"Error del servicio de imágenes ({response.status_code})", response.status_code)

        body = response.json()
        url = body.get("secure_url") or body.get("url")
        if not url:
            raise TransientError("El servicio de imágenes no devolvió una URL")
        logger.info("Imagen subida correctamente")
        return url
