"""
FastAPI HTTP transport: health check, SSE stream (/sse + /messages) and a direct one-shot endpoint (/mcp).
Every endpoint except /health goes through the token gate before any routing happens.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from app.auth import Authenticator, CredentialSources
from app.config import SERVICE_NAME, SERVICE_VERSION, Settings, get_settings
from app.errors import AuthenticationError, ProtocolError, SessionNotFoundError, UnknownMethodError
from app.protocol import RequestRouter
from app.sessions import SessionManager
from app.sse import sse_events
from tools.registry import ToolRegistry
from tools.weather_api import WeatherGateway

log = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"
CORS_HEADERS = ["Content-Type", "Authorization", "x-api-key", "mcp-session-id"]

routes = APIRouter()


async def require_token(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    x_api_key: Optional[str] = Header(default=None),
    token: Optional[str] = Query(default=None),
):
    sources = CredentialSources(authorization=authorization, api_key=x_api_key, query_token=token)
    if not request.app.state.authenticator.authenticate(sources):
        log.warning(
            "auth_rejected",
            extra={"path": request.url.path, "request_id": getattr(request.state, "request_id", None)},
        )
        raise AuthenticationError()


async def _unauthorized(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=401,
        content={"error": "Unauthorized", "message": "Valid Personal Access Token required"},
    )


async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    response = await call_next(request)
    response.headers["x-request-id"] = rid
    return response


@routes.get("/health")
async def health(request: Request):
    """Liveness check, no auth."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "mode": request.app.state.settings.deployment_mode,
    }


@routes.get("/sse", dependencies=[Depends(require_token)])
async def sse(request: Request):
    """Open a streaming session. The first event tells the client where to POST its messages."""
    state = request.app.state
    return StreamingResponse(
        sse_events(state.sessions, MESSAGES_PATH, state.settings.sse_keepalive_seconds),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )


async def _route_to_session(router: RequestRouter, sessions: SessionManager, session_id: str, message) -> None:
    response = await router.handle_message(message)
    if response is None:
        return
    try:
        sessions.dispatch(session_id, response)
    except SessionNotFoundError:
        # Stream closed while the call was in flight.
        log.info("sse_response_discarded", extra={"session_id": session_id})


@routes.post(MESSAGES_PATH, status_code=202, dependencies=[Depends(require_token)])
async def post_message(
    request: Request,
    background_tasks: BackgroundTasks,
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
):
    """Accept a client message for a live session; the reply is pushed on that session's stream."""
    state = request.app.state
    if not session_id:
        return JSONResponse(status_code=400, content={"error": "Session ID required"})
    if session_id not in state.sessions:
        return JSONResponse(status_code=404, content={"error": "Session not found"})
    try:
        message = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})

    background_tasks.add_task(_route_to_session, state.router, state.sessions, session_id, message)
    return {"status": "accepted"}


@routes.post("/mcp", dependencies=[Depends(require_token)])
async def direct_mcp(request: Request):
    """One-shot request/response with no session state."""
    router: RequestRouter = request.app.state.router
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})
    if not isinstance(body, dict) or not body.get("method"):
        return JSONResponse(status_code=400, content={"error": "Method is required"})

    method = body["method"]
    params = body.get("params")
    if "id" not in body and isinstance(method, str) and method.startswith("notifications/"):
        return Response(status_code=202)
    if method == "tools/call" and params is None:
        return JSONResponse(status_code=400, content={"error": "Unknown method"})

    try:
        result = await router.handle(method, params)
    except UnknownMethodError:
        return JSONResponse(status_code=400, content={"error": "Unknown method"})
    except ProtocolError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception:
        log.exception("direct_mcp_error", extra={"method": method})
        return JSONResponse(status_code=500, content={"error": "Failed to handle MCP request"})
    return {"jsonrpc": "2.0", "id": body.get("id"), "result": result}


def create_app(settings: Optional[Settings] = None, gateway: Optional[WeatherGateway] = None) -> FastAPI:
    """Wire components from one Settings object. The gateway can be injected for tests."""
    settings = settings or get_settings()
    gateway = gateway or WeatherGateway.from_settings(settings)

    app = FastAPI(title="Weather MCP Server", version=SERVICE_VERSION)
    app.state.settings = settings
    app.state.authenticator = Authenticator.from_settings(settings)
    app.state.sessions = SessionManager()
    app.state.router = RequestRouter(ToolRegistry(), gateway)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_HEADERS,
    )
    app.middleware("http")(add_request_id)
    app.add_exception_handler(AuthenticationError, _unauthorized)
    app.include_router(routes)
    return app
