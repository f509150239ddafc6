"""CORS headers for the routes mobile clients call directly."""

from fastapi import Response

from app.config import CORS_ALLOW_ORIGINS

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Accept", "Authorization"]
CORS_MAX_AGE = 86400


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*" if "*" in CORS_ALLOW_ORIGINS else ", ".join(CORS_ALLOW_ORIGINS),
        "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
        "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
        "Access-Control-Max-Age": str(CORS_MAX_AGE),
    }


def preflight_response() -> Response:
    """Answer a bare OPTIONS request (no Origin header, so CORSMiddleware lets it through)."""
    return Response(status_code=200, headers=cors_headers())
