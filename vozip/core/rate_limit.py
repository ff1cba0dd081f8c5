# vozip/core/rate_limit.py
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import get_settings

limiter = Limiter(key_func=get_remote_address)


def login_rate_limit() -> str:
    return get_settings().login_rate_limit


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "message": "Demasiados intentos. Por favor, espera un momento e inténtalo de nuevo.",
            "error": f"Rate limit exceeded: {exc.detail}",
        },
    )
