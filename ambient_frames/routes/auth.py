"""
Admin login, session check and logout.
The session is a signed cookie; nothing is stored server-side.
"""
from fastapi import APIRouter, Depends, HTTPException, Header, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from ambient_frames.database import get_db
from ambient_frames.schemas import LoginRequest
from ambient_frames.utils.auth import authenticate_admin
from ambient_frames.utils.rate_limit import limiter, RATE_LIMITS
from ambient_frames.utils.session_auth import (
    create_session_token,
    set_session_cookie,
    clear_session_cookie,
    get_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/auth", tags=["Auth"])


@router.post("")
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Log an admin in and set the session cookie.

    Raises:
        HTTPException: 401 on bad credentials, 500 if the credential lookup fails
    """
    try:
        admin = await authenticate_admin(db, credentials.username, credentials.password)
    except SQLAlchemyError as e:
        logger.error(f"Credential lookup failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Authentication failed"}
        )

    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials"}
        )

    token, claims = create_session_token(admin.username)
    logger.info(f"Admin '{admin.username}' logged in")

    response = JSONResponse({
        "success": True,
        "message": "Login successful",
        "user": {"username": admin.username},
        "expiresAt": claims.expires_at,
    })
    set_session_cookie(response, token)
    return response


@router.get("")
async def check_session(
    request: Request,
    authorization: Optional[str] = Header(None)
):
    """Report whether the caller holds a valid, unexpired session."""
    claims = get_session(request, authorization)

    if claims is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"authenticated": False}
        )

    return {
        "authenticated": True,
        "user": {"username": claims.username},
        "expiresAt": claims.expires_at,
    }


@router.delete("")
async def logout():
    """Clear the session cookie. The token itself stays valid until it expires."""
    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    clear_session_cookie(response)
    return response
