import logging
import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from refresher_api.config.settings import settings
from refresher_api.core.exceptions import ApiError, InternalError, RateLimitError, ValidationError
from refresher_api.core.rate_limit import UserRateLimiter
from refresher_api.database.supabase_client import create_supabase_client
from refresher_api.modules.auth import routes as auth_routes
from refresher_api.modules.profiles import routes as profiles_routes
from refresher_api.modules.topics import routes as topics_routes
from refresher_api.modules.topics.generation import OpenRouterClient

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
# datefmt carries a literal Z, so timestamps are rendered in UTC
logging.Formatter.converter = time.gmtime
logger = logging.getLogger(__name__)

# Message used for a 400 depending on where the first invalid input came from
_VALIDATION_MESSAGES = {
    "path": "Invalid topic ID format",
    "query": "Invalid query parameters",
    "body": "Invalid request body",
}


def _error_field(error) -> str:
    loc = error["loc"]
    # json_invalid carries the character offset after "body"
    if error.get("type") == "json_invalid" or len(loc) == 1:
        return str(loc[0])
    return ".".join(str(p) for p in loc[1:])


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    source = errors[0]["loc"][0] if errors and errors[0].get("loc") else "body"
    details = []
    for e in errors:
        # a path parameter shared by a route and its body dependency is reported by both
        detail = {"field": _error_field(e), "message": e["msg"]}
        if detail not in details:
            details.append(detail)
    error = ValidationError(_VALIDATION_MESSAGES.get(source, ValidationError.message), details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    error = RateLimitError(f"Rate limit exceeded: {exc.detail}")
    response = JSONResponse(status_code=error.status_code, content=error.to_dict())
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=InternalError().to_dict())


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app() -> FastAPI:
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    app.state.limiter = limiter
    app.state.generation_limiter = UserRateLimiter(settings.ai_rate_limit, enabled=settings.rate_limit_enabled)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_routes.router)
    app.include_router(topics_routes.router)
    app.include_router(profiles_routes.router)

    @app.on_event("startup")
    async def startup_event():
        app.state.supabase = create_supabase_client(settings)
        app.state.ai_client = OpenRouterClient.from_settings(settings)
        logger.info("Application startup (environment=%s)", settings.environment)

    @app.on_event("shutdown")
    async def shutdown_event():
        ai_client = getattr(app.state, "ai_client", None)
        if ai_client is not None:
            ai_client.close()
        logger.info("Application shutdown")

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness check: the Supabase client has been built."""
        if getattr(app.state, "supabase", None) is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return {"status": "ready"}

    return app


app = create_app()
