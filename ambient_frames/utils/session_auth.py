"""
Stateless signed-session authentication for admin access.

A session token is `<payload>.<signature>` where `payload` is the base64url
encoded canonical JSON claim `{"expiresAt": ..., "username": ...}` and
`signature` is the base64url HMAC-SHA256 of the encoded payload. There is no
server-side session table: a token stays valid until its embedded expiry.
"""
import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Optional

from fastapi import HTTPException, status, Header, Request, Response

from ambient_frames.config import settings
from ambient_frames.schemas import SessionClaims

logger = logging.getLogger(__name__)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _signature(encoded: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), encoded.encode("ascii"), hashlib.sha256).digest()
    return _b64encode(digest)


def _now_ms() -> float:
    return time.time() * 1000


def sign_session(payload: dict, secret: Optional[str] = None) -> str:
    """
    Sign a session payload.

    Args:
        payload: JSON-serialisable claim, normally {"username", "expiresAt"}
        secret: Signing key (defaults to SESSION_SECRET)

    Returns:
        str: Token in the form `<encoded>.<signature>`
    """
    secret = secret or settings.SESSION_SECRET
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    encoded = _b64encode(body.encode("utf-8"))
    return f"{encoded}.{_signature(encoded, secret)}"


def verify_session(
    token: Optional[str],
    secret: Optional[str] = None,
    now: Optional[float] = None,
) -> Optional[dict]:
    """
    Verify a session token and return its payload.

    Never raises: malformed, tampered and expired tokens all yield None.

    Args:
        token: Token produced by sign_session
        secret: Signing key (defaults to SESSION_SECRET)
        now: Current time in epoch milliseconds (defaults to the wall clock)

    Returns:
        dict: The decoded claim, or None if the token is not acceptable
    """
    if not token or not isinstance(token, str):
        return None

    parts = token.split(".")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    encoded, signature = parts

    try:
        expected = _signature(encoded, secret or settings.SESSION_SECRET)
    except UnicodeEncodeError:
        return None

    # Compare the encoded strings so that every character of the signature counts
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        return None

    try:
        payload = json.loads(_b64decode(encoded))
    except ValueError:
        return None

    if not isinstance(payload, dict):
        return None

    username = payload.get("username")
    expires_at = payload.get("expiresAt")
    if not isinstance(username, str) or isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        return None

    current = _now_ms() if now is None else now
    if expires_at < current:
        return None

    return payload


def create_session_token(username: str, ttl_seconds: Optional[int] = None) -> tuple[str, SessionClaims]:
    """
    Create a signed token for a freshly authenticated admin.

    Returns:
        tuple: (token, claims)
    """
    ttl = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    expires_at = int(_now_ms()) + ttl * 1000
    token = sign_session({"username": username, "expiresAt": expires_at})
    return token, SessionClaims(username=username, expires_at=expires_at)


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_SECONDS,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def get_session(request: Request, authorization: Optional[str] = None) -> Optional[SessionClaims]:
    """
    Resolve the session for a request without raising.
    The session cookie is tried first; an `Authorization: Bearer` token is
    used when the cookie is absent or does not verify.
    """
    payload = verify_session(request.cookies.get(settings.SESSION_COOKIE_NAME))
    if payload is None:
        payload = verify_session(_bearer_token(authorization))
    if payload is None:
        return None

    return SessionClaims(username=payload["username"], expires_at=int(payload["expiresAt"]))


def require_session(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to the session cookie)")
) -> SessionClaims:
    """
    FastAPI dependency guarding every admin-only route.

    FastAPI decodes a JSON body before resolving dependencies, so a request
    whose body is not valid JSON gets 400 even without a session. The route
    body never runs in that case, so nothing is changed.

    Raises:
        HTTPException: 401 if the session is missing, tampered or expired
    """
    claims = get_session(request, authorization)
    if claims is None:
        logger.info(f"Rejected unauthenticated request to {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unauthorized", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )
    return claims
