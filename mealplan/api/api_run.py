from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4
import logging

from fastapi import FastAPI, Request, Response, Query, Depends
from fastapi.responses import JSONResponse

from mealplan.api.dependencies import SESSION_COOKIE, forget_session, get_session, remember_session
from mealplan.api.routes import plan, recipes, shopping
from mealplan.domain.errors import (
    GatewayUnavailableError,
    NotSignedInError,
    ValidationError,
    VersionConflictError,
)
from mealplan.events.web_observers import start as start_event_observers, get_events as get_web_events
from mealplan.infra.Session_Provider import Identity, LocalSessionProvider
from mealplan.utilities.config import DEBUG
from mealplan.utilities.validators import LoginInput

logger = logging.getLogger("mealplan_app")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    start_event_observers()
    logger.info("Change observers started")
    yield


app = FastAPI(title="Shared Meal Planner API", debug=DEBUG, lifespan=lifespan)

app.include_router(recipes.router)
app.include_router(plan.router)
app.include_router(shopping.router)


# -------------------- Error mapping --------------------
def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def _validation_error(_request: Request, exc: ValidationError):
    return _error(400, exc)


@app.exception_handler(NotSignedInError)
async def _not_signed_in(_request: Request, exc: NotSignedInError):
    return _error(401, exc)


@app.exception_handler(VersionConflictError)
async def _version_conflict(_request: Request, exc: VersionConflictError):
    return _error(409, exc)


@app.exception_handler(GatewayUnavailableError)
async def _gateway_unavailable(_request: Request, exc: GatewayUnavailableError):
    logger.error("Gateway unavailable: %s", exc)
    return _error(503, exc)


# -------------------- Session --------------------
def _session_payload(session: LocalSessionProvider) -> dict:
    identity = session.current
    return {"signed_in": identity is not None, "user": identity.to_dict() if identity else None}


@app.get("/api/session")
def session_status(session: LocalSessionProvider = Depends(get_session)):
    return _session_payload(session)


@app.post("/api/session/login")
def login(payload: LoginInput, response: Response, session: LocalSessionProvider = Depends(get_session)):
    session.sign_in(Identity(uid=uuid4().hex, display_name=payload.display_name, email=payload.email))
    response.set_cookie(SESSION_COOKIE, remember_session(session), httponly=True, samesite="lax")
    return _session_payload(session)


@app.post("/api/session/logout")
def logout(response: Response, session: LocalSessionProvider = Depends(get_session)):
    """Signs out this browser only; other sessions on the LAN stay signed in."""
    session.sign_out()
    forget_session(session)
    response.delete_cookie(SESSION_COOKIE)
    return _session_payload(session)


# -------------------- Change feed (polled by the frontend) --------------------
@app.get("/api/changes")
def api_changes(
    since: Optional[int] = Query(default=None, description="Return events with id greater than this value")
):
    """
    Return recent store change events.

    Client polling strategy:
        1. First call without 'since' and load the resources.
        2. Store 'next_cursor' from the response.
        3. Poll /api/changes?since=<next_cursor>; re-fetch every resource named
           by a returned event's 'key'.
    """
    return get_web_events(since)
