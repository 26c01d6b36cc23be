import os
from typing import Optional
from functools import lru_cache
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configurar el logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Permitir campos extra en .env
    )

    # Información del proyecto
    PROJECT_NAME: str = "gymdash"
    VERSION: str = "0.1.0"

    # Debug mode
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "False").lower() in ("true", "1", "t")

    # API REST externa
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:5050/api")
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))

    @field_validator("API_BASE_URL", mode="before")
    def normalize_api_base_url(cls, v: Optional[str]) -> str:
        """Elimina comentarios, espacios y la barra final de la URL base."""
        if not v:
            raise ValueError("API_BASE_URL no puede estar vacía")
        if '#' in v:
            v = v.split('#')[0]
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")) and not v.startswith("/"):
            logger.warning("API_BASE_URL no tiene esquema, asumiendo https://")
            v = f"https://{v}"
        return v

    # Logging
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "False").lower() in ("true", "1", "t")

    # Almacenamiento durable de credenciales: file, redis o memory
    CREDENTIAL_BACKEND: str = os.getenv("CREDENTIAL_BACKEND", "file")
    CREDENTIAL_FILE: str = os.getenv("CREDENTIAL_FILE", os.path.join(os.path.expanduser("~"), ".gymdash", "credential.json"))
    CREDENTIAL_REDIS_KEY: str = "gymdash:credential"
    REDIS_URL: str = "redis://localhost:6379/0"

    @field_validator("CREDENTIAL_BACKEND")
    def validate_credential_backend(cls, v: str) -> str:
        allowed = ["file", "redis", "memory"]
        v = v.strip().lower()
        if v not in allowed:
            raise ValueError(f"CREDENTIAL_BACKEND debe ser uno de: {allowed}")
        return v

    @field_validator("REDIS_URL", mode="before")
    def normalize_redis_url(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            # Eliminar comentarios (todo lo que sigue a #)
            if '#' in v:
                v = v.split('#')[0]
                logger.info("REDIS_URL: eliminados comentarios en configuración")
            return v.strip()
        return "redis://localhost:6379/0"

    # Rutas de login por rol y retardo de redirección
    ADMIN_LOGIN_ROUTE: str = "/admin/login"
    TRAINER_LOGIN_ROUTE: str = "/trainers/login"
    USER_LOGIN_ROUTE: str = "/users/login"
    REDIRECT_DELAY_SECONDS: float = 1.0

    # CDN de imágenes (subida directa, sin firma)
    CDN_UPLOAD_URL: Optional[str] = os.getenv("CDN_UPLOAD_URL", None)
    CDN_UPLOAD_PRESET: Optional[str] = os.getenv("CDN_UPLOAD_PRESET", None)
    MAX_PROFILE_IMAGE_BYTES: int = 2 * 1024 * 1024  # 2MB


# Usar una función con caché para obtener la configuración
@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info("Configuración cargada correctamente")
    return settings
