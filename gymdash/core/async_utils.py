"""
Utilidades async compartidas por las pantallas del dashboard.

- run_sync_in_async: ejecuta I/O bloqueante (archivos) en un executor
- async_timed: mide y loguea la duración de llamadas a la API
- batch_gather: ejecuta varias llamadas en paralelo con logging
"""

import asyncio
from functools import wraps
import logging
import time
from typing import Any, Callable, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_sync_in_async(func: Callable[..., T]) -> Callable[..., Coroutine[Any, Any, T]]:
    """
    Decorator para ejecutar funciones síncronas en contextos async sin bloquear.

    Ejecuta la función en el ThreadPoolExecutor por defecto del loop.

    Uso:
        @run_sync_in_async
        def read_file(path):
            ...

        data = await read_file("credential.json")

    Args:
        func: Función síncrona a wrappear

    Returns:
        Función async que ejecuta la función sync en un executor
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))
    return wrapper


def async_timed(log_level: str = "debug"):
    """
    Decorator para medir tiempo de ejecución de funciones async.

    Uso:
        @async_timed(log_level="info")
        async def fetch_users():
            ...

        # Logs: "fetch_users tomó 120.00ms"

    Args:
        log_level: Nivel de logging (debug, info, warning, error)

    Returns:
        Decorator que mide y loguea el tiempo
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed = (time.perf_counter() - start) * 1000
                log_func = getattr(logger, log_level)
                log_func(f"{func.__qualname__} tomó {elapsed:.2f}ms")
        return wrapper
    return decorator


async def batch_gather(*coroutines, return_exceptions: bool = False):
    """
    Ejecuta múltiples coroutines en paralelo con logging mejorado.

    Con return_exceptions=True se comporta como un "allSettled": cada
    posición del resultado contiene el valor o la excepción de esa llamada.

    Args:
        *coroutines: Coroutines a ejecutar en paralelo
        return_exceptions: Si True, retorna excepciones en vez de lanzarlas

    Returns:
        Lista de resultados en el mismo orden que las coroutines
    """
    start = time.perf_counter()
    try:
        results = await asyncio.gather(*coroutines, return_exceptions=return_exceptions)

        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"batch_gather ejecutó {len(coroutines)} operaciones en {elapsed:.2f}ms")

        return results
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        logger.error(f"batch_gather falló después de {elapsed:.2f}ms: {e}")
        raise
