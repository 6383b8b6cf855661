"""
Power BI Explorer data transfer objects

Flat records mirroring Power BI REST API entities, serialized with camelCase keys.
"""

from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class PbiModel(BaseModel):
    """Base model with camelCase aliases"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-ready dictionary"""
        return self.model_dump(mode="json", by_alias=True)


class WorkspaceInfo(PbiModel):
    """Power BI workspace (group)"""
    id: str
    name: str = ""
    is_read_only: bool = False
    is_on_dedicated_capacity: bool = False
    type: Optional[str] = "Workspace"


class ReportInfo(PbiModel):
    """Power BI report"""
    id: str
    name: str = ""
    web_url: Optional[str] = None
    embed_url: Optional[str] = None
    dataset_id: Optional[str] = None
    report_type: Optional[str] = None


class DatasetInfo(PbiModel):
    """Power BI dataset"""
    id: str
    name: str = ""
    web_url: Optional[str] = None
    is_refreshable: Optional[bool] = None
    is_on_prem_gateway_required: Optional[bool] = None
    configured_by: Optional[str] = None


class DashboardInfo(PbiModel):
    """Power BI dashboard"""
    id: str
    display_name: str = ""
    web_url: Optional[str] = None
    embed_url: Optional[str] = None
    is_read_only: bool = False


class TileInfo(PbiModel):
    """Dashboard tile"""
    id: str
    title: str = ""
    embed_url: Optional[str] = None
    report_id: Optional[str] = None
    dataset_id: Optional[str] = None


class RefreshHistoryInfo(PbiModel):
    """Dataset refresh history entry"""
    request_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[str] = None
    refresh_type: Optional[str] = None
    service_exception_json: Optional[str] = None


class CapacityInfo(PbiModel):
    """Premium / Embedded capacity"""
    id: str
    display_name: str = ""
    sku: Optional[str] = None
    state: Optional[str] = None
    region: Optional[str] = None


class GatewayInfo(PbiModel):
    """On-premises data gateway"""
    id: str
    name: str = ""
    type: Optional[str] = None
    public_key: Optional[str] = None


class DataflowInfo(PbiModel):
    """Power BI dataflow"""
    object_id: str
    name: str = ""
    description: Optional[str] = None
    configured_by: Optional[str] = None


class EmbedConfig(PbiModel):
    """Everything a browser needs to embed a report"""
    report_id: Optional[str] = None
    report_name: Optional[str] = None
    embed_url: Optional[str] = None
    embed_token: Optional[str] = None
    token_expiry: Optional[datetime] = None


class TokenResponse(PbiModel):
    """Result of an access token request"""
    success: bool
    access_token: Optional[str] = None
    expires_on: Optional[datetime] = None
    error: Optional[str] = None


class ApiResult(PbiModel, Generic[T]):
    """Uniform response envelope"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    count: Optional[int] = None

    @classmethod
    def ok(cls, data: Any, count: Optional[int] = None) -> "ApiResult":
        return cls(success=True, data=data, count=count)

    @classmethod
    def fail(cls, error: str) -> "ApiResult":
        return cls(success=False, error=error)
