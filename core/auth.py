"""
Authentication Module for the Power BI REST API

Acquires app-only tokens for an Azure AD service principal (client
credentials flow via MSAL) and keeps a single cached token in memory.
The cached token is reused until it is within TOKEN_EXPIRY_MARGIN of
expiring, then refreshed on the next request.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import msal

from config.settings import PowerBIConfig, TOKEN_EXPIRY_MARGIN, load_config
from .models import TokenResponse

logger = logging.getLogger(__name__)

INCOMPLETE_CONFIG_ERROR = (
    "Power BI configuration is incomplete. Please set POWERBI_APPLICATION_ID, "
    "POWERBI_APPLICATION_SECRET and POWERBI_TENANT_ID"
)


@dataclass
class AuthConfig:
    """Cached token record"""
    token: str
    expires_on: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _build_msal_app(config: PowerBIConfig) -> msal.ConfidentialClientApplication:
    return msal.ConfidentialClientApplication(
        client_id=config.application_id,
        client_credential=config.application_secret,
        authority=config.authority,
    )


class AuthenticationManager:
    """Manages the service principal token for the Power BI API"""

    def __init__(
        self,
        config: Optional[PowerBIConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        app_factory: Optional[Callable[[PowerBIConfig], Any]] = None
    ):
        """
        Initialize authentication manager

        Args:
            config: Credentials and URLs (default: loaded from the environment)
            clock: Returns the current UTC time
            app_factory: Builds the MSAL confidential client for a config
        """
        self.config = config or load_config()
        self._clock = clock or _utcnow
        self._app_factory = app_factory or _build_msal_app
        self._cached_token: Optional[AuthConfig] = None

    def _is_valid(self, cached: Optional[AuthConfig]) -> bool:
        return bool(cached and cached.token) and self._clock() < cached.expires_on - TOKEN_EXPIRY_MARGIN

    def get_access_token(self) -> TokenResponse:
        """
        Return a valid bearer token, refreshing it when absent or stale

        Never raises: failures are reported through TokenResponse.error.
        """
        cached = self._cached_token
        if self._is_valid(cached):
            return TokenResponse(success=True, access_token=cached.token, expires_on=cached.expires_on)

        if not self.config.is_complete:
            logger.error("Power BI configuration is incomplete")
            return TokenResponse(success=False, error=INCOMPLETE_CONFIG_ERROR)

        try:
            app = self._app_factory(self.config)
            result: Dict[str, Any] = app.acquire_token_for_client(scopes=[self.config.scope]) or {}

            token = result.get("access_token")
            if not token:
                description = (
                    result.get("error_description")
                    or result.get("error")
                    or "no access token returned"
                )
                logger.error(f"MSAL authentication error: {description}")
                return TokenResponse(success=False, error=f"Authentication failed: {description}")

            expires_on = self._clock() + timedelta(seconds=int(result.get("expires_in", 0)))
            self._cached_token = AuthConfig(token=token, expires_on=expires_on)
            logger.info(f"Acquired Power BI access token, expires {expires_on.isoformat()}")

            return TokenResponse(success=True, access_token=token, expires_on=expires_on)

        except Exception as e:
            logger.exception("Error getting access token")
            return TokenResponse(success=False, error=f"Error: {e}")

    def get_token(self) -> Optional[str]:
        """
        Get access token string

        Returns:
            Bearer token, or None if authentication failed
        """
        response = self.get_access_token()
        return response.access_token if response.success else None

    def clear_cache(self) -> None:
        """Clear cached token"""
        self._cached_token = None

    def get_auth_info(self) -> Optional[AuthConfig]:
        """Get current cached token record"""
        return self._cached_token


# Process-wide instance, created on first use
_default_auth: Optional[AuthenticationManager] = None


def get_auth_manager() -> AuthenticationManager:
    """Get default authentication manager instance"""
    global _default_auth
    if _default_auth is None:
        _default_auth = AuthenticationManager()
    return _default_auth


def reset_auth_manager() -> None:
    """Drop the default manager so the next call re-reads configuration"""
    global _default_auth
    _default_auth = None


def get_token() -> Optional[str]:
    """Get authentication token using default manager"""
    return get_auth_manager().get_token()
