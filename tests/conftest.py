import inspect
import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest
import pytest_asyncio

from gymdash.api.client import ApiClient
from gymdash.controllers.navigation import Navigator
from gymdash.core.credentials import CredentialProvider, MemoryCredentialStore
from gymdash.schemas.credential import Credential, Role

BASE_URL = "http://testserver/api"


class FakeBackend:
    """
    Servidor REST falso para httpx.MockTransport.

    Cada ruta (método, path) tiene una cola de respuestas: se consumen en
    orden y la última se repite. Una respuesta puede ser (status, body),
    un httpx.Response o un callable (sync o async) que recibe el request.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Any) -> None:
        self.routes.setdefault((method.upper(), path), []).extend(responses)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"message": f"Ruta no encontrada: {path}"})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            response = response(request)
            if inspect.isawaitable(response):
                response = await response
        if isinstance(response, httpx.Response):
            return response
        status, body = response
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method.upper() and r.url.path == f"/api{path}"
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


def make_credential(role: Role = Role.ADMIN, token: str = "test-token-123456", **profile) -> Dict[str, Any]:
    credential = Credential(token=token, role=role, profile_snapshot=profile or {"_id": "p1", "email": "a@gym.com"})
    return credential.model_dump(mode="json", by_alias=True)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store():
    """Almacén en memoria con una sesión de admin."""
    return MemoryCredentialStore(make_credential(Role.ADMIN))


@pytest.fixture
def credentials(store):
    return CredentialProvider(store)


@pytest.fixture
def navigator():
    return Navigator()


@pytest_asyncio.fixture
async def api(backend, credentials):
    client = ApiClient(credentials, base_url=BASE_URL, transport=httpx.MockTransport(backend.handler))
    yield client
    await client.aclose()


@pytest.fixture
def as_role(store):
    """Cambia la sesión persistida al rol indicado."""
    def _set(role: Role, **profile):
        store._data = make_credential(role, **profile)
    return _set
