"""
Configuration settings for Power BI Explorer
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

# API Configuration
API_HOST = "0.0.0.0"
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_PREFIX = "/api/powerbi"
API_VERSION = "1.0.0"

# Authentication
AUTHORITY_URI = "https://login.microsoftonline.com/"
POWERBI_RESOURCE = "https://analysis.windows.net/powerbi/api"
POWERBI_SCOPE = f"{POWERBI_RESOURCE}/.default"
POWERBI_API_URL = "https://api.powerbi.com/"

# Tokens expiring within this margin are refreshed before use
TOKEN_EXPIRY_MARGIN = timedelta(minutes=5)

# Keyring entry holding the client secret when it is not in the environment
KEYRING_SERVICE = "powerbi"
KEYRING_SECRET_KEY = "application_secret"

# Upstream HTTP timeout (seconds)
REQUEST_TIMEOUT = 60

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class PowerBIConfig:
    """Service principal credentials and endpoint URLs"""
    application_id: str = ""
    application_secret: str = ""
    tenant_id: str = ""
    authority_uri: str = AUTHORITY_URI
    resource_url: str = POWERBI_RESOURCE
    api_url: str = POWERBI_API_URL
    scope: str = POWERBI_SCOPE

    @property
    def is_complete(self) -> bool:
        return bool(self.application_id and self.application_secret and self.tenant_id)

    @property
    def authority(self) -> str:
        base = self.authority_uri if self.authority_uri.endswith("/") else self.authority_uri + "/"
        return f"{base}{self.tenant_id}"


def _secret_from_keyring() -> Optional[str]:
    """Read the client secret from the system keyring, if one is stored"""
    try:
        import keyring
        return keyring.get_password(KEYRING_SERVICE, KEYRING_SECRET_KEY)
    except ImportError:
        return None  # keyring not installed
    except Exception:
        logging.getLogger(__name__).warning("Keyring lookup failed", exc_info=True)
        return None


def load_config() -> PowerBIConfig:
    """
    Bind Power BI settings from the environment

    Returns:
        PowerBIConfig populated from POWERBI_* variables
    """
    env = os.environ
    secret = env.get("POWERBI_APPLICATION_SECRET", "") or _secret_from_keyring() or ""

    return PowerBIConfig(
        application_id=env.get("POWERBI_APPLICATION_ID", ""),
        application_secret=secret,
        tenant_id=env.get("POWERBI_TENANT_ID", ""),
        authority_uri=env.get("POWERBI_AUTHORITY_URI", AUTHORITY_URI),
        resource_url=env.get("POWERBI_RESOURCE_URL", POWERBI_RESOURCE),
        api_url=env.get("POWERBI_API_URL", POWERBI_API_URL),
        scope=env.get("POWERBI_SCOPE", POWERBI_SCOPE),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the service"""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
