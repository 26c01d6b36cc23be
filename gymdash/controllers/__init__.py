from gymdash.controllers.navigation import Navigator, login_route_for
from gymdash.controllers.resource_controller import AuthenticatedResourceController
from gymdash.controllers.state import ControllerState, MutationResult, RefreshStrategy, ViewMode

__all__ = [
    "AuthenticatedResourceController",
    "ControllerState",
    "MutationResult",
    "Navigator",
    "RefreshStrategy",
    "ViewMode",
    "login_route_for",
]
