from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response
from starlette.requests import Request
from loanlink.api.loan_routes import router as loan_router
from loanlink.api.user_routes import router as user_router
from loanlink.api.loan_application_routes import router as loan_application_router
from loanlink.api.payment_routes import router as payment_router
from contextlib import asynccontextmanager
from loanlink.core.config import settings
from loanlink.core.exceptions import LoanLinkError, StoreError
from loanlink.database.connection import StoreHandle, mask_mongo_uri
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
import logging
import traceback

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("server_exception_handler")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds basic security headers to every non-preflight response.

    OPTIONS requests are left to CORSMiddleware so preflight responses keep
    their Access-Control headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Missing MONGODB_URI raises ConfigurationError here and the server never starts serving
    app.state.settings.validate()
    store = StoreHandle(app.state.settings)
    app.state.store = store

    try:
        await store.get_database()
    except StoreError as e:
        logger.error(f"MongoDB Connection Error: {e.message}")
        logger.error(f"Obfuscated MONGODB_URI: {mask_mongo_uri(app.state.settings.MONGODB_URI)}")
        logger.warning("Continuing to start the server without a DB connection; requests will retry")

    yield

    await store.close()


app = FastAPI(
    title="LoanLink",
    description="Loan marketplace API: loan catalog, applications, users and payments",
    version="1.0.0",
    lifespan=lifespan
)
app.state.settings = settings


def _error_body(code: str, message, status_code: int, details=None) -> dict:
    error = {"code": code, "message": message, "status_code": status_code}
    if details is not None:
        error["details"] = details
    return {"error": error}


@app.exception_handler(LoanLinkError)
async def loanlink_exception_handler(request: Request, exc: LoanLinkError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.status_code),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTPException handled: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", str(exc.detail) if exc.detail else exc.status_code, exc.status_code),
        headers=getattr(exc, "headers", None),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content=_error_body("validation_error", "Request validation failed", 422, details=jsonable_errors(exc)),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # Catch-all for unexpected exceptions. Log traceback and return a generic
    # structured error so clients receive consistent JSON.
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_server_error", "An unexpected error occurred", 500),
    )


# Middleware runs LIFO: CORS is added last so it handles preflight requests first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(loan_router)
app.include_router(user_router)
app.include_router(loan_application_router)
app.include_router(payment_router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "LoanLink Server is running"


@app.get("/health")
async def health_check():
    store = getattr(app.state, "store", None)
    return {
        "status": "healthy",
        "database": "connected" if store is not None and store.is_connected else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
