"""Cross-origin access for the learner and instructor frontends."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skillsage.config import Settings

# The API only reads and posts; nothing is updated or deleted over HTTP.
ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=["*"],
        expose_headers=EXPOSED_HEADERS,
    )
