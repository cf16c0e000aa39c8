"""
main.py

Application entrypoint for the Estate Reviews API.
- Initializes structured logging
- Sets up FastAPI application and middlewares
- Registers domain exception handlers
- Registers the review router
- Integrates rate limiting via SlowAPI
- Adds common security headers
- Configures CORS
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.responses import Response

from estate_reviews.core.config import settings
from estate_reviews.core.exceptions import register_exception_handlers
from estate_reviews.core.limiter import limiter
from estate_reviews.core.logging import init_logging
from estate_reviews.review.routes import router as review_router
from estate_reviews.utils.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware


# -----------------------------
# FastAPI App Initialization
# -----------------------------
init_logging()
app = FastAPI(title=settings.APP_NAME)

# -----------------------------
# Middleware Configuration
# -----------------------------
app.state.limiter = limiter


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    return _rate_limit_exceeded_handler(request, exc)  # type: ignore[arg-type]


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# -----------------------------
# CORSMiddleware Configuration
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# -----------------------------
# API Router Registration
# -----------------------------
app.include_router(review_router)


# -----------------------------
# Health Endpoint
# -----------------------------
@app.get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    return {"status": "ok", "app": settings.APP_NAME}
