"""
OAuth sign-in with Google and Microsoft

Builds the provider authorization URL and exchanges the callback code for a
normalised profile. The provider access token is only used for the profile
call and never stored.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import (
    API_BASE_URL,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    MICROSOFT_CLIENT_ID,
    MICROSOFT_CLIENT_SECRET,
    MICROSOFT_TENANT,
)

logger = logging.getLogger(__name__)

# Google OAuth URLs
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - OAuth endpoint URL
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = ["openid", "email", "profile"]

# Microsoft identity platform URLs
MICROSOFT_AUTH_URL = f"https://login.microsoftonline.com/{MICROSOFT_TENANT}/oauth2/v2.0/authorize"
MICROSOFT_TOKEN_URL = f"https://login.microsoftonline.com/{MICROSOFT_TENANT}/oauth2/v2.0/token"  # noqa: S105
MICROSOFT_PROFILE_URL = "https://graph.microsoft.com/v1.0/me"
MICROSOFT_SCOPES = ["openid", "email", "profile", "User.Read"]

SUPPORTED_PROVIDERS = ("google", "microsoft")


class OAuthError(Exception):
    """Raised when the provider login cannot be completed"""


@dataclass(frozen=True)
class OAuthProfile:
    provider: str
    provider_id: str
    email: str
    name: str


def _credentials(provider: str) -> tuple[Optional[str], Optional[str]]:
    if provider == "google":
        return GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET
    if provider == "microsoft":
        return MICROSOFT_CLIENT_ID, MICROSOFT_CLIENT_SECRET
    raise OAuthError(f"Unsupported OAuth provider: {provider}")


def redirect_uri(provider: str) -> str:
    return f"{API_BASE_URL.rstrip('/')}/auth/{provider}/callback"


def is_configured(provider: str) -> bool:
    client_id, client_secret = _credentials(provider)
    return bool(client_id and client_secret)


def build_authorization_url(provider: str, state: str) -> str:
    """Provider consent-screen URL carrying our signed ``state``"""
    client_id, _ = _credentials(provider)
    if provider == "google":
        base_url, scopes = GOOGLE_AUTH_URL, GOOGLE_SCOPES
        extra = {"access_type": "online", "prompt": "select_account"}
    else:
        base_url, scopes = MICROSOFT_AUTH_URL, MICROSOFT_SCOPES
        extra = {"response_mode": "query"}

    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri(provider),
        "response_type": "code",
        "scope": " ".join(scopes),
        "state": state,
        **extra,
    }
    return str(httpx.URL(base_url, params=params))


def _google_profile(data: dict) -> OAuthProfile:
    name = data.get("name") or " ".join(
        part for part in (data.get("given_name"), data.get("family_name")) if part
    )
    return OAuthProfile(
        provider="google",
        provider_id=str(data.get("id") or data.get("sub") or ""),
        email=(data.get("email") or "").strip().lower(),
        name=name,
    )


def _microsoft_profile(data: dict) -> OAuthProfile:
    name = data.get("displayName") or " ".join(
        part for part in (data.get("givenName"), data.get("surname")) if part
    )
    # Personal accounts often have no "mail"; the UPN is their sign-in address
    email = data.get("mail") or data.get("userPrincipalName") or ""
    return OAuthProfile(
        provider="microsoft",
        provider_id=str(data.get("id") or ""),
        email=email.strip().lower(),
        name=name,
    )


async def exchange_code_for_profile(provider: str, code: str) -> OAuthProfile:
    """
    Exchange an authorization code for the signed-in user's profile

    Raises:
        OAuthError: If the provider rejects the code or returns no email
    """
    client_id, client_secret = _credentials(provider)
    if not client_id or not client_secret:
        raise OAuthError(f"{provider} OAuth is not configured")

    token_url = GOOGLE_TOKEN_URL if provider == "google" else MICROSOFT_TOKEN_URL
    profile_url = GOOGLE_USERINFO_URL if provider == "google" else MICROSOFT_PROFILE_URL

    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            token_response = await client.post(
                token_url,
                data={
                    "code": code,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": redirect_uri(provider),
                    "grant_type": "authorization_code",
                },
            )

            if token_response.status_code != 200:
                logger.error(f"❌ {provider} token exchange failed: {token_response.text}")
                raise OAuthError("Failed to exchange authorization code")

            access_token = token_response.json().get("access_token")
            if not access_token:
                raise OAuthError("Invalid token response")

            profile_response = await client.get(
                profile_url, headers={"Authorization": f"Bearer {access_token}"}
            )

            if profile_response.status_code != 200:
                logger.error(f"❌ Failed to get {provider} user info: {profile_response.text}")
                raise OAuthError("Failed to get user info")

            data = profile_response.json()
    except httpx.HTTPError as e:
        logger.error(f"❌ {provider} OAuth request failed: {e}")
        raise OAuthError(f"{provider} OAuth request failed") from e

    profile = _google_profile(data) if provider == "google" else _microsoft_profile(data)

    if not profile.email:
        raise OAuthError("Email is required from OAuth provider")
    if not profile.provider_id:
        raise OAuthError("Provider did not return a user id")

    logger.info(f"✅ {provider} profile received for {profile.email}")
    return profile
