"""CORS configuration for the Schedula web client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schedula.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured frontend origins; bearer tokens travel in the Authorization header."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"],
    )
