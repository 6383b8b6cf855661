"""Core module for Power BI Explorer"""

from .auth import AuthenticationManager, get_token, get_auth_manager
from .models import ApiResult, EmbedConfig, TokenResponse
from .powerbi_client import PowerBIClient, PowerBIApiError
from .service import PowerBIService, normalize_export_format

__all__ = [
    'AuthenticationManager',
    'get_token',
    'get_auth_manager',
    'ApiResult',
    'EmbedConfig',
    'TokenResponse',
    'PowerBIClient',
    'PowerBIApiError',
    'PowerBIService',
    'normalize_export_format',
]
