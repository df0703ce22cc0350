import logging
import re
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .api import invalid_account_number, router, utcnow_iso
from .config import Settings
from .domain import is_valid_account_number
from .errors import AccountError
from .logger_config import request_id_var, setup_logging
from .service import AccountService
from .store import AccountStore

log = logging.getLogger(__name__)

# ---- status -> code mapping ----
STATUS_TO_CODE = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_ERROR",
}

# request body field -> code used when that field fails validation
FIELD_TO_CODE = {
    "amount": "INVALID_AMOUNT",
    "account_number": "INVALID_ACCOUNT_NUMBER",
    "initial_balance": "VALIDATION_ERROR",
}


def code_for(status: int) -> str:
    return STATUS_TO_CODE.get(status, f"HTTP_{status}")


def error_response(request: Request, status: int, code: str, message: str, details=None) -> JSONResponse:
    content = {
        "error": message,
        "code": code,
        "timestamp": utcnow_iso(),
        "path": request.url.path,
        "method": request.method,
    }
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status, content=content)


def validation_code(err: dict) -> str:
    kind = err.get("type", "")
    loc = tuple(err.get("loc", ()))
    if kind == "json_invalid":
        return "INVALID_JSON"
    if kind == "extra_forbidden":
        return "UNEXPECTED_FIELDS"
    if loc == ("body",):
        return "INVALID_REQUEST_BODY"
    field = loc[1] if len(loc) > 1 else None
    return FIELD_TO_CODE.get(field, "VALIDATION_ERROR")


# ---- middleware ----
TRANSACTION_PATH_RE = re.compile(r"^/accounts/([^/]+)/(?:withdraw|deposit)$")


class EnforceJSONMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.method in {"POST", "PUT", "PATCH"} and request.url.path.startswith("/accounts"):
            match = TRANSACTION_PATH_RE.match(request.url.path)
            if match and not is_valid_account_number(match.group(1)):
                # the account number is checked ahead of the body
                exc = invalid_account_number(match.group(1))
                return error_response(request, exc.status_code, exc.code, exc.message, exc.details)
            ct = request.headers.get("content-type", "").split(";")[0].strip().lower()
            if ct != "application/json":
                log.warning("Unsupported content type %r: %s %s", ct, request.method, request.url.path)
                return error_response(
                    request, 400, "INVALID_CONTENT_TYPE", "Content-Type must be application/json",
                    details={"provided": ct or "none"},
                )
        return await call_next(request)


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            request_id_var.reset(token)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response


# ---- lifespan ----
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.started_at = time.monotonic()
    if not settings.disable_seed:
        app.state.store.seed()
    log.info("ATM API started env=%s accounts=%d", settings.env, app.state.store.count())
    try:
        yield
    finally:
        log.info("ATM API stopped")


def create_app(settings: Settings | None = None, store: AccountStore | None = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(title="ATM System", version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else AccountStore()
    app.state.service = AccountService(app.state.store)
    app.state.started_at = time.monotonic()

    # middleware (last added runs first)
    app.add_middleware(EnforceJSONMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CORSMiddleware, allow_origins=[settings.cors_origin], allow_methods=["*"], allow_headers=["*"])
    app.add_middleware(RequestIDMiddleware)

    # exception handlers
    @app.exception_handler(AccountError)
    async def account_error_handler(request: Request, exc: AccountError):
        log.info("%s %s -> %s %s (%s)", request.method, request.url.path, exc.status_code, exc.code, exc.message)
        return error_response(request, exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        details = [
            {"field": ".".join(str(x) for x in e.get("loc", ())[1:]), "message": e.get("msg", "")}
            for e in errors
        ]
        code = validation_code(errors[0]) if errors else "VALIDATION_ERROR"
        msg = "Invalid request."
        if code == "INVALID_JSON":
            msg = "Invalid JSON format in request body"
        elif details:
            first = details[0]
            msg = f"{first['field']}: {first['message']}" if first["field"] else (first["message"] or msg)
        log.warning("400 validation: %s %s -> %s (%s)", request.method, request.url.path, code, msg)
        return error_response(request, 400, code, msg, details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            detail = f"Route {request.method} {request.url.path} not found"
        elif isinstance(exc.detail, str):
            detail = exc.detail
        else:
            detail = code_for(exc.status_code).replace("_", " ").title()
        log.warning("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, detail)
        return error_response(request, exc.status_code, code_for(exc.status_code), detail)

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        log.exception("Unhandled error: %s %s", request.method, request.url.path)
        message = "Internal server error" if settings.is_production else (str(exc) or "An unexpected error occurred")
        return error_response(request, 500, "INTERNAL_ERROR", message)

    # routers
    app.include_router(router)
    return app


app = create_app()
