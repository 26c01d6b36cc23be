"""
Tests para AuthenticatedResourceController

Cubren autenticación previa al fetch, frescura de respuestas, reconciliación
tras mutaciones y la reacción a cada tipo de error.
"""

import asyncio

import httpx
import pytest

from gymdash.controllers.resource_controller import NO_LONGER_EXISTS, AuthenticatedResourceController
from gymdash.controllers.state import ControllerState, RefreshStrategy, ViewMode
from gymdash.schemas.credential import Role
from gymdash.schemas.user import User

USERS = "/admin/users"


def gated(body, started: asyncio.Event, release: asyncio.Event):
    """Respuesta que se bloquea hasta que el test la libera."""
    async def _respond(request):
        started.set()
        await release.wait()
        return httpx.Response(200, json=body)
    return _respond


@pytest.fixture
def controller(api, credentials, navigator):
    return AuthenticatedResourceController(api, credentials, navigator, schema=User, name="users")


class TestInitialize:
    """Tests de la comprobación de credencial."""

    @pytest.mark.asyncio
    async def test_without_token_is_unauthorized(self, controller, store, navigator, backend):
        """Sin token → UNAUTHORIZED, redirección a /admin/login y ningún fetch."""
        store._data = {"token": None}

        state = await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        assert state == ControllerState.UNAUTHORIZED
        assert controller.redirect_target == "/admin/login"
        assert navigator.scheduled == "/admin/login"
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_role_mismatch_is_unauthorized_without_fetch(self, controller, as_role, navigator, backend):
        """Rol distinto → UNAUTHORIZED y ningún request emitido."""
        as_role(Role.USER)

        state = await controller.initialize(Role.ADMIN)
        result = await controller.fetch_collection(USERS)

        assert state == ControllerState.UNAUTHORIZED
        assert result is None
        assert controller.error_type == "PermissionError"
        assert navigator.scheduled == "/admin/login"
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_role_mismatch_does_not_clear_credential(self, controller, as_role, credentials):
        """Un rol incorrecto no destruye la sesión del otro rol."""
        as_role(Role.TRAINER)

        await controller.initialize(Role.ADMIN)

        credential = await credentials.get()
        assert credential.role == Role.TRAINER

    @pytest.mark.asyncio
    async def test_redirect_uses_required_role_login(self, api, credentials, navigator, store):
        """La redirección va al login del rol requerido."""
        store._data = None
        ctrl = AuthenticatedResourceController(api, credentials, navigator)

        await ctrl.initialize(Role.TRAINER)

        assert ctrl.redirect_target == "/trainers/login"

    @pytest.mark.asyncio
    async def test_valid_credential_moves_to_loading(self, controller):
        """Credencial con el rol correcto → LOADING."""
        assert await controller.initialize(Role.ADMIN) == ControllerState.LOADING

    @pytest.mark.asyncio
    async def test_fetch_before_initialize_raises(self, controller):
        """fetch_collection sin initialize es un error de programación."""
        with pytest.raises(RuntimeError):
            await controller.fetch_collection(USERS)


class TestFetchCollection:
    """Tests de carga de la colección."""

    @pytest.mark.asyncio
    async def test_success_replaces_collection(self, controller, backend):
        """200 con [{_id:'1', name:'A'}] → READY con esa colección."""
        backend.add("GET", USERS, (200, [{"_id": "1", "name": "A"}]))
        await controller.initialize(Role.ADMIN)

        items = await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.READY
        assert [(u.id, u.name) for u in items] == [("1", "A")]
        assert controller.items[0].is_suspended is False

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self, controller, backend):
        """El request lleva Authorization: Bearer <token>."""
        backend.add("GET", USERS, (200, []))
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert backend.requests[0].headers["Authorization"] == "Bearer test-token-123456"

    @pytest.mark.asyncio
    async def test_401_clears_credential_and_redirects(self, controller, backend, credentials, navigator):
        """401 → credencial eliminada, UNAUTHORIZED y redirección programada."""
        backend.add("GET", USERS, (401, {"message": "Token expired"}))
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.UNAUTHORIZED
        assert (await credentials.get()).token is None
        assert navigator.scheduled == "/admin/login"

    @pytest.mark.asyncio
    async def test_403_clears_credential(self, controller, backend, credentials):
        """403 genérico se trata como fallo de autorización."""
        backend.add("GET", USERS, (403, {"message": "Forbidden"}))
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.UNAUTHORIZED
        assert (await credentials.get()).is_present is False

    @pytest.mark.asyncio
    async def test_membership_denial_keeps_credential(self, controller, backend, credentials, navigator):
        """403 por plan insuficiente → mensaje visible, sin logout ni redirección."""
        backend.add("GET", USERS, (403, {"error": "Access denied: premium membership required"}))
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.ERROR
        assert controller.error_type == "MembershipAccessError"
        assert (await credentials.get()).is_present is True
        assert navigator.scheduled is None

    @pytest.mark.asyncio
    async def test_server_error_preserves_cache(self, controller, backend, credentials):
        """5xx → ERROR con mensaje; la colección previa y la credencial se conservan."""
        backend.add("GET", USERS, (200, [{"_id": "1", "name": "A"}]), (500, {"message": "Boom"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.ERROR
        assert controller.error == "Boom"
        assert [u.id for u in controller.items] == ["1"]
        assert (await credentials.get()).is_present is True

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self, controller, backend):
        """Error de red → ERROR y el servidor queda marcado como caído."""
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)
        backend.add("GET", USERS, fail)
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.ERROR
        assert controller.error_type == "TransientError"
        assert controller.api.server_status.is_down is True

    @pytest.mark.asyncio
    async def test_invalid_body_is_schema_error(self, controller, backend):
        """Un cuerpo que no es lista → ERROR de esquema."""
        backend.add("GET", USERS, (200, {"users": []}))
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert controller.state == ControllerState.ERROR
        assert controller.error_type == "SchemaError"

    @pytest.mark.asyncio
    async def test_only_latest_fetch_is_applied(self, controller, backend):
        """Una respuesta lenta de un fetch anterior no pisa la del último."""
        started, release = asyncio.Event(), asyncio.Event()
        backend.add(
            "GET", USERS,
            gated([{"_id": "old", "name": "Viejo"}], started, release),
            (200, [{"_id": "new", "name": "Nuevo"}]),
        )
        await controller.initialize(Role.ADMIN)

        first = asyncio.create_task(controller.fetch_collection(USERS))
        await started.wait()
        await controller.fetch_collection(USERS)
        release.set()
        stale_result = await first

        assert stale_result is None
        assert [u.id for u in controller.items] == ["new"]
        assert controller.state == ControllerState.READY

    @pytest.mark.asyncio
    async def test_stale_failure_is_ignored(self, controller, backend):
        """El error de un fetch obsoleto no pasa el controlador a ERROR."""
        started, release = asyncio.Event(), asyncio.Event()

        async def slow_failure(request):
            started.set()
            await release.wait()
            return httpx.Response(500, json={"message": "tarde"})

        backend.add("GET", USERS, slow_failure, (200, [{"_id": "1"}]))
        await controller.initialize(Role.ADMIN)

        first = asyncio.create_task(controller.fetch_collection(USERS))
        await started.wait()
        await controller.fetch_collection(USERS)
        release.set()
        await first

        assert controller.state == ControllerState.READY
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_fetch_in_flight_does_not_undo_merge(self, controller, backend):
        """Un GET emitido antes de un MERGE no pisa la entidad confirmada."""
        started, release = asyncio.Event(), asyncio.Event()
        backend.add(
            "GET", USERS,
            (200, [{"_id": "1", "name": "A"}]),
            gated([{"_id": "1", "name": "A", "isSuspended": False}], started, release),
        )
        backend.add("PUT", f"{USERS}/1", (200, {"_id": "1", "name": "A", "isSuspended": True}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        in_flight = asyncio.create_task(controller.fetch_collection(USERS))
        await started.wait()
        result = await controller.mutate(
            f"{USERS}/1", "PUT", {"isSuspended": True}, key="1", strategy=RefreshStrategy.MERGE
        )
        release.set()
        stale_result = await in_flight

        assert result.ok is True
        assert stale_result is None
        assert controller.find("1").is_suspended is True
        assert controller.stale is False
        assert controller.state == ControllerState.READY

    @pytest.mark.asyncio
    async def test_unmount_during_fetch_is_silent(self, controller, backend):
        """Desmontar con un fetch en vuelo: sin cambio de estado ni excepción."""
        started, release = asyncio.Event(), asyncio.Event()
        backend.add("GET", USERS, gated([{"_id": "1"}], started, release))
        await controller.initialize(Role.ADMIN)

        task = asyncio.create_task(controller.fetch_collection(USERS))
        await started.wait()
        controller.unmount()
        release.set()
        result = await task

        assert result is None
        assert controller.items == []
        assert controller.state == ControllerState.LOADING
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_unmount_during_failing_fetch_is_silent(self, controller, backend, credentials):
        """Un 401 que llega tras desmontar no destruye la credencial."""
        started, release = asyncio.Event(), asyncio.Event()

        async def late_401(request):
            started.set()
            await release.wait()
            return httpx.Response(401, json={"message": "expired"})

        backend.add("GET", USERS, late_401)
        await controller.initialize(Role.ADMIN)

        task = asyncio.create_task(controller.fetch_collection(USERS))
        await started.wait()
        controller.unmount()
        release.set()
        await task

        assert (await credentials.get()).is_present is True


class TestRetry:
    """Tests del reintento explícito."""

    @pytest.mark.asyncio
    async def test_retry_reissues_last_fetch(self, controller, backend):
        """ERROR → retry → READY con los datos nuevos."""
        backend.add("GET", USERS, (503, {"message": "down"}), (200, [{"_id": "1"}]))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        await controller.retry()

        assert controller.state == ControllerState.READY
        assert len(backend.calls("GET", USERS)) == 2

    @pytest.mark.asyncio
    async def test_retry_outside_error_is_noop(self, controller, backend):
        """retry desde READY no emite requests."""
        backend.add("GET", USERS, (200, []))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        assert await controller.retry() is None
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_retried_automatically(self, controller, backend):
        """Un 5xx no dispara reintentos por sí solo."""
        backend.add("GET", USERS, (500, {"message": "down"}))
        await controller.initialize(Role.ADMIN)

        await controller.fetch_collection(USERS)

        assert len(backend.requests) == 1


class TestMutate:
    """Tests de mutaciones y reconciliación de caché."""

    @pytest.mark.asyncio
    async def test_suspend_refetches_collection(self, controller, backend):
        """PUT /admin/users/1 {isSuspended:true} → el re-fetch lo refleja."""
        backend.add(
            "GET", USERS,
            (200, [{"_id": "1", "name": "A", "isSuspended": False}]),
            (200, [{"_id": "1", "name": "A", "isSuspended": True}]),
        )
        backend.add("PUT", f"{USERS}/1", (200, {"message": "ok"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        result = await controller.mutate(f"{USERS}/1", "PUT", {"isSuspended": True}, key="1")

        assert result.ok is True
        assert backend.body(backend.calls("PUT", f"{USERS}/1")[0]) == {"isSuspended": True}
        assert controller.find("1").is_suspended is True
        assert controller.stale is False
        assert len(backend.calls("GET", USERS)) == 2

    @pytest.mark.asyncio
    async def test_refetch_equals_fresh_fetch(self, controller, backend, api, credentials, navigator):
        """La colección tras mutar es igual a la de un fetch nuevo."""
        server = [{"_id": "1", "name": "A"}]
        backend.add("GET", USERS, lambda request: httpx.Response(200, json=server))

        def create(request):
            server.append({"_id": "2", "name": "B"})
            return httpx.Response(201, json=server[-1])

        backend.add("POST", USERS, create)
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        await controller.mutate(USERS, "POST", {"name": "B"})
        fresh = AuthenticatedResourceController(api, credentials, navigator, schema=User)
        await fresh.initialize(Role.ADMIN)
        await fresh.fetch_collection(USERS)

        assert controller.items == fresh.items

    @pytest.mark.asyncio
    async def test_failed_mutation_leaves_collection_untouched(self, controller, backend):
        """Un fallo al mutar deja la colección igual a su snapshot."""
        backend.add("GET", USERS, (200, [{"_id": "1", "name": "A"}]))
        backend.add("PUT", f"{USERS}/1", (400, {"message": "Email inválido"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)
        before = controller.snapshot()

        result = await controller.mutate(f"{USERS}/1", "PUT", {"email": "x"}, key="1")

        assert result.ok is False
        assert result.error == "Email inválido"
        assert controller.items == before
        assert controller.mutation_errors == {"1": "Email inválido"}
        assert controller.state == ControllerState.READY
        assert not controller.is_pending("1")

    @pytest.mark.asyncio
    async def test_duplicate_submission_is_skipped(self, controller, backend):
        """Un segundo envío con la misma clave pendiente no emite request."""
        started, release = asyncio.Event(), asyncio.Event()
        backend.add("GET", USERS, (200, [{"_id": "1"}]))
        backend.add("PUT", f"{USERS}/1", gated({"message": "ok"}, started, release))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        first = asyncio.create_task(controller.mutate(f"{USERS}/1", "PUT", {"name": "X"}, key="1"))
        await started.wait()
        assert controller.is_pending("1")
        duplicate = await controller.mutate(f"{USERS}/1", "PUT", {"name": "X"}, key="1")
        release.set()
        await first

        assert duplicate.skipped is True
        assert len(backend.calls("PUT", f"{USERS}/1")) == 1

    @pytest.mark.asyncio
    async def test_auth_failure_during_mutation(self, controller, backend, credentials, navigator):
        """401 al mutar → mismo tratamiento que en fetch."""
        backend.add("GET", USERS, (200, [{"_id": "1"}]))
        backend.add("DELETE", f"{USERS}/1", (401, {"message": "expired"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        result = await controller.mutate(f"{USERS}/1", "DELETE", key="1")

        assert result.ok is False
        assert controller.state == ControllerState.UNAUTHORIZED
        assert (await credentials.get()).token is None
        assert navigator.scheduled == "/admin/login"

    @pytest.mark.asyncio
    async def test_not_found_clears_selection(self, controller, backend):
        """404 al mutar el elemento seleccionado → selección limpia y aviso."""
        backend.add("GET", USERS, (200, [{"_id": "1"}]))
        backend.add("PUT", f"{USERS}/1", (404, {"message": "User not found"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)
        controller.select_item("1")

        await controller.mutate(f"{USERS}/1", "PUT", {"name": "X"}, key="1")

        assert controller.selected is None
        assert controller.view_mode == ViewMode.LIST
        assert controller.notice == NO_LONGER_EXISTS
        assert [u.id for u in controller.items] == ["1"]

    @pytest.mark.asyncio
    async def test_merge_replaces_with_server_entity(self, controller, backend):
        """MERGE reemplaza por id con la entidad devuelta, sin re-fetch."""
        backend.add("GET", USERS, (200, [{"_id": "1", "name": "A"}, {"_id": "2", "name": "B"}]))
        backend.add("PUT", f"{USERS}/2", (200, {"_id": "2", "name": "B2", "isSuspended": True}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        await controller.mutate(f"{USERS}/2", "PUT", {"name": "B2"}, key="2", strategy=RefreshStrategy.MERGE)

        assert [u.name for u in controller.items] == ["A", "B2"]
        assert controller.find("2").is_suspended is True
        assert len(backend.calls("GET", USERS)) == 1

    @pytest.mark.asyncio
    async def test_merge_appends_on_create_and_removes_on_delete(self, controller, backend):
        """MERGE añade al crear y elimina al borrar."""
        backend.add("GET", USERS, (200, [{"_id": "1"}]))
        backend.add("POST", USERS, (201, {"_id": "2", "name": "Nuevo"}))
        backend.add("DELETE", f"{USERS}/1", (204, None))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        await controller.mutate(USERS, "POST", {"name": "Nuevo"}, strategy=RefreshStrategy.MERGE)
        await controller.mutate(f"{USERS}/1", "DELETE", key="1", strategy=RefreshStrategy.MERGE)

        assert [u.id for u in controller.items] == ["2"]

    @pytest.mark.asyncio
    async def test_merge_without_entity_falls_back_to_refetch(self, controller, backend):
        """Si el servidor no devuelve la entidad, MERGE recarga la colección."""
        backend.add("GET", USERS, (200, [{"_id": "1"}]), (200, [{"_id": "1", "name": "Z"}]))
        backend.add("PUT", f"{USERS}/1", (200, {"message": "updated"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)

        await controller.mutate(f"{USERS}/1", "PUT", {"name": "Z"}, key="1", strategy=RefreshStrategy.MERGE)

        assert controller.find("1").name == "Z"
        assert len(backend.calls("GET", USERS)) == 2

    @pytest.mark.asyncio
    async def test_mutation_after_unauthorized_is_noop(self, controller, backend, store):
        """UNAUTHORIZED es terminal: las mutaciones se descartan."""
        store._data = None
        await controller.initialize(Role.ADMIN)

        result = await controller.mutate(USERS, "POST", {"name": "X"})

        assert result.skipped is True
        assert backend.requests == []


class TestSelection:
    """Tests de los modos de vista."""

    @pytest.mark.asyncio
    async def test_select_closes_create_form(self, controller, backend):
        """Seleccionar un elemento cierra el formulario de alta."""
        backend.add("GET", USERS, (200, [{"_id": "1"}]))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)
        controller.open_create_form()

        controller.select_item("1")

        assert controller.view_mode == ViewMode.DETAIL
        assert controller.selected.id == "1"

    @pytest.mark.asyncio
    async def test_create_form_clears_selection(self, controller, backend):
        """Abrir el formulario de alta descarta la selección."""
        backend.add("GET", USERS, (200, [{"_id": "1"}]))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)
        controller.select_item("1")

        controller.open_create_form()

        assert controller.selected is None
        assert controller.view_mode == ViewMode.CREATE
        controller.close_create_form()
        assert controller.view_mode == ViewMode.LIST

    @pytest.mark.asyncio
    async def test_load_item_not_found_removes_from_cache(self, controller, backend):
        """404 en el detalle → se elimina de la caché con aviso."""
        backend.add("GET", USERS, (200, [{"_id": "1"}, {"_id": "2"}]))
        backend.add("GET", f"{USERS}/2", (404, {"message": "User not found"}))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)
        controller.select_item("2")

        result = await controller.load_item(f"{USERS}/2", "2")

        assert result is None
        assert [u.id for u in controller.items] == ["1"]
        assert controller.selected is None
        assert controller.notice == NO_LONGER_EXISTS

    @pytest.mark.asyncio
    async def test_refetch_drops_vanished_selection(self, controller, backend):
        """Si el seleccionado desaparece tras un re-fetch, se limpia la selección."""
        backend.add("GET", USERS, (200, [{"_id": "1"}, {"_id": "2"}]), (200, [{"_id": "1"}]))
        await controller.initialize(Role.ADMIN)
        await controller.fetch_collection(USERS)
        controller.select_item("2")

        await controller.fetch_collection(USERS)

        assert controller.selected is None
        assert controller.notice == NO_LONGER_EXISTS
