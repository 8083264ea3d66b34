"""HTTP client and credentials."""

from .auth import Auth, GoogleAuth
from .client import AiohttpClient, HttpClient, HttpResponse

__all__ = [
    "Auth",
    "GoogleAuth",
    "AiohttpClient",
    "HttpClient",
    "HttpResponse",
]
