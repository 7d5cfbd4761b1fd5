"""
Authentication routes

OAuth sign-in with Google or Microsoft, then a locally issued JWT. The
frontend receives the token on ``{CLIENT_URL}/auth/callback?token=...``.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ... import oauth
from ...api_response import success_response
from ...auth import get_current_user, get_token_payload
from ...config import CLIENT_URL
from ...database import get_db
from ...errors import AppError, not_found
from ...models import User
from ...permissions import get_user_permissions
from ...rate_limiter import auth_rate_limit
from ...security_utils import create_access_token, generate_oauth_state, revoke_token, verify_oauth_state
from ..users.schemas import CurrentUserResponse
from ..users.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def current_user_response(user: User) -> CurrentUserResponse:
    return CurrentUserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        provider=user.provider,
        permissions=sorted(p.value for p in get_user_permissions(user.role)),
        createdAt=user.created_at,
        updatedAt=user.updated_at,
    )


def _login_failed_redirect() -> RedirectResponse:
    return RedirectResponse(url=f"{CLIENT_URL}/login?{urlencode({'error': 'oauth_failed'})}")


def _start_login(provider: str) -> RedirectResponse:
    if not oauth.is_configured(provider):
        logger.error(f"❌ {provider} OAuth requested but not configured")
        raise AppError(f"{provider.title()} sign-in is not configured", 503, "SERVICE_UNAVAILABLE")

    state = generate_oauth_state(provider)
    logger.info(f"🔐 Redirecting to {provider} sign-in")
    return RedirectResponse(url=oauth.build_authorization_url(provider, state))


@router.get("/google", dependencies=[Depends(auth_rate_limit)])
async def google_login():
    """Redirect to Google's consent screen"""
    return _start_login("google")


@router.get("/microsoft", dependencies=[Depends(auth_rate_limit)])
async def microsoft_login():
    """Redirect to Microsoft's consent screen"""
    return _start_login("microsoft")


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    """Current user profile with the permissions of their role"""
    return success_response(current_user_response(current_user))


@router.post("/logout")
async def logout(payload: dict[str, Any] = Depends(get_token_payload)):
    """Revoke the presented token until it would have expired"""
    revoke_token(payload["jti"], payload["exp"])
    logger.info(f"👋 User {payload['sub']} logged out")
    return success_response(message="Logged out successfully")


@router.post("/refresh")
async def refresh_token(
    payload: dict[str, Any] = Depends(get_token_payload),
    current_user: User = Depends(get_current_user),
):
    """Issue a fresh token from the current database row and revoke the old one"""
    token = create_access_token(current_user)
    revoke_token(payload["jti"], payload["exp"])
    logger.info(f"🔄 Token refreshed for user {current_user.id}")
    return success_response({"token": token, "user": current_user_response(current_user)})


@router.get("/{provider}/callback", dependencies=[Depends(auth_rate_limit)])
async def oauth_callback(
    provider: str,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Complete the provider sign-in.

    Exchanges the code for a profile, upserts the user by email and redirects
    to the frontend with a JWT. Any provider failure redirects to the login
    page with ``error=oauth_failed``.
    """
    if provider not in oauth.SUPPORTED_PROVIDERS:
        raise not_found("Endpoint not found")

    if error:
        logger.warning(f"⚠️ {provider} sign-in returned error: {error}")
        return _login_failed_redirect()
    if not code or not verify_oauth_state(state, provider):
        logger.warning(f"⚠️ {provider} callback with missing code or invalid state")
        return _login_failed_redirect()

    try:
        profile = await oauth.exchange_code_for_profile(provider, code)
    except oauth.OAuthError as e:
        logger.error(f"❌ {provider} sign-in failed: {e}")
        return _login_failed_redirect()

    user = UserService(db).find_or_create_from_oauth(profile)
    token = create_access_token(user)
    logger.info(f"✅ {provider} sign-in complete for user {user.id}")
    return RedirectResponse(url=f"{CLIENT_URL}/auth/callback?{urlencode({'token': token})}")
