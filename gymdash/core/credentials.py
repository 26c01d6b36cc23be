"""
Proveedor de credenciales con almacenamiento durable.

La credencial (token + rol + snapshot del perfil) es el único recurso
compartido entre pantallas. Se inyecta explícitamente en cada pantalla en
lugar de leerse de un singleton global.

Disciplina de escritor único:
- Las pantallas solo leen (get) y, ante un 401/403, destruyen (clear)
- Solo los flujos de login/logout/refresh escriben (replace)
- Toda escritura reemplaza la credencial completa; gana la última
- Las escrituras se serializan con un asyncio.Lock

Backends disponibles:
- MemoryCredentialStore: en memoria (tests, sesiones efímeras)
- FileCredentialStore: archivo JSON local
- RedisCredentialStore: clave en Redis (redis.asyncio)
"""

import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis

from gymdash.core.async_utils import run_sync_in_async
from gymdash.core.config import get_settings
from gymdash.schemas.credential import Credential

logger = logging.getLogger("credential_provider")


class CredentialStore(ABC):
    """Almacenamiento clave-valor durable para la credencial serializada."""

    @abstractmethod
    async def read(self) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def write(self, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self) -> None:
        ...


class MemoryCredentialStore(CredentialStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data = dict(initial) if initial else None

    async def read(self) -> Optional[Dict[str, Any]]:
        return dict(self._data) if self._data is not None else None

    async def write(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)

    async def delete(self) -> None:
        self._data = None


class FileCredentialStore(CredentialStore):
    """
    Guarda la credencial en un archivo JSON.

    La escritura es atómica (archivo temporal + os.replace) para que un
    lector nunca vea un archivo a medio escribir. El I/O se ejecuta en un
    executor para no bloquear el event loop.
    """

    def __init__(self, path: str):
        self.path = path

    def _read_sync(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Archivo de credencial ilegible en {self.path}: {e}")
            return None

    def _write_sync(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".credential-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _delete_sync(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    async def read(self) -> Optional[Dict[str, Any]]:
        return await run_sync_in_async(self._read_sync)()

    async def write(self, data: Dict[str, Any]) -> None:
        await run_sync_in_async(self._write_sync)(data)

    async def delete(self) -> None:
        await run_sync_in_async(self._delete_sync)()


class RedisCredentialStore(CredentialStore):
    """Guarda la credencial como JSON bajo una única clave de Redis."""

    def __init__(self, redis_client: Redis, key: str):
        self.redis_client = redis_client
        self.key = key

    async def read(self) -> Optional[Dict[str, Any]]:
        raw = await self.redis_client.get(self.key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Credencial corrupta en Redis ({self.key}): {e}")
            await self.redis_client.delete(self.key)
            return None

    async def write(self, data: Dict[str, Any]) -> None:
        await self.redis_client.set(self.key, json.dumps(data))

    async def delete(self) -> None:
        await self.redis_client.delete(self.key)


class CredentialProvider:
    """Punto único de acceso a la credencial persistida."""

    def __init__(self, store: CredentialStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def get(self) -> Credential:
        """
        Lee la credencial actual.

        Returns:
            Credential: vacía (token=None) si no existe o está corrupta
        """
        data = await self.store.read()
        if not data:
            return Credential()
        try:
            return Credential.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"Credencial persistida inválida, se ignora: {e.error_count()} errores")
            return Credential()

    async def replace(self, credential: Credential) -> None:
        """Reemplaza la credencial completa. Solo para flujos de autenticación."""
        async with self._lock:
            await self.store.write(credential.model_dump(mode="json", by_alias=True))
            logger.info(f"Credencial reemplazada (rol={credential.role.value if credential.role else None})")

    async def clear(self) -> None:
        """Destruye la credencial (logout o 401/403)."""
        async with self._lock:
            await self.store.delete()
            logger.info("Credencial eliminada")


def build_credential_provider() -> CredentialProvider:
    """Construye el proveedor según CREDENTIAL_BACKEND."""
    settings = get_settings()
    backend = settings.CREDENTIAL_BACKEND
    if backend == "redis":
        redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
        store = RedisCredentialStore(redis_client, settings.CREDENTIAL_REDIS_KEY)
    elif backend == "memory":
        store = MemoryCredentialStore()
    else:
        store = FileCredentialStore(settings.CREDENTIAL_FILE)
    logger.info(f"Proveedor de credenciales inicializado con backend '{backend}'")
    return CredentialProvider(store)
