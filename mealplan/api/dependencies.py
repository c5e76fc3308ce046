"""FastAPI dependencies: the shared gateway, per-browser sessions and loaded models.

The server keeps one gateway for the whole process (the app is meant to run on
a home LAN). Sessions are keyed by the SESSION_COOKIE set at login, so each
browser signs in and out on its own. Each request loads the resources it needs
with a single read; browser clients learn about changes by polling /api/changes.
Tests swap the gateway and the session through app.dependency_overrides.
"""
from typing import Dict, Optional
from uuid import uuid4

from fastapi import Cookie, Depends

from mealplan.domain.errors import NotSignedInError
from mealplan.infra.Session_Provider import Identity, LocalSessionProvider
from mealplan.infra.Sync_Gateway import LocalSyncGateway, SyncGateway
from mealplan.logic.catalog.recipe_catalog import RecipeCatalog
from mealplan.logic.planning.weekly_plan import WeeklyPlanModel
from mealplan.logic.shopping.list_model import ShoppingListModel
from mealplan.utilities.config import STORE_FILE

SESSION_COOKIE = "mealplan_session"

_gateway: Optional[SyncGateway] = None
_sessions: Dict[str, LocalSessionProvider] = {}


def get_gateway() -> SyncGateway:
    global _gateway
    if _gateway is None:
        _gateway = LocalSyncGateway(STORE_FILE)
    return _gateway


def get_session(session_id: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE)) -> LocalSessionProvider:
    """The caller's session; a browser without a known cookie gets a fresh signed-out one."""
    return _sessions.get(session_id or "") or LocalSessionProvider()


def remember_session(session: LocalSessionProvider) -> str:
    """Register a signed-in session and return the token to hand out as cookie."""
    for token, known in _sessions.items():
        if known is session:
            return token
    token = uuid4().hex
    _sessions[token] = session
    return token


def forget_session(session: LocalSessionProvider):
    for token in [t for t, known in _sessions.items() if known is session]:
        del _sessions[token]


def require_identity(session: LocalSessionProvider = Depends(get_session)) -> Identity:
    if session.current is None:
        raise NotSignedInError("Sign in to use the shared planner")
    return session.current


async def get_catalog(gateway: SyncGateway = Depends(get_gateway),
                      _identity: Identity = Depends(require_identity)) -> RecipeCatalog:
    return await RecipeCatalog(gateway).load()


async def get_plan_model(gateway: SyncGateway = Depends(get_gateway),
                         _identity: Identity = Depends(require_identity)) -> WeeklyPlanModel:
    return await WeeklyPlanModel(gateway).load()


async def get_shopping_model(gateway: SyncGateway = Depends(get_gateway),
                             catalog: RecipeCatalog = Depends(get_catalog),
                             plan_model: WeeklyPlanModel = Depends(get_plan_model)) -> ShoppingListModel:
    return await ShoppingListModel(gateway, plan_model, catalog).load()
