"""
Power BI Explorer service

One method per upstream resource. Every method authenticates, makes a single
Power BI API call, maps the payload into flat DTOs and wraps the outcome in
an ApiResult envelope. Errors never escape: they are logged and returned in
the envelope's error field.
"""

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from .auth import AuthenticationManager, get_auth_manager
from .models import (
    ApiResult,
    CapacityInfo,
    DashboardInfo,
    DataflowInfo,
    DatasetInfo,
    EmbedConfig,
    GatewayInfo,
    RefreshHistoryInfo,
    ReportInfo,
    TileInfo,
    TokenResponse,
    WorkspaceInfo,
)
from .powerbi_client import PowerBIClient

logger = logging.getLogger(__name__)

AUTH_FAILED_ERROR = "Failed to authenticate"

EXPORT_FORMATS = {"pdf": "PDF", "pptx": "PPTX", "png": "PNG"}
DEFAULT_EXPORT_FORMAT = "PDF"


def normalize_export_format(file_format: Optional[str]) -> str:
    """Map a user supplied format to the API's FileFormat, defaulting to PDF"""
    return EXPORT_FORMATS.get((file_format or "").strip().lower(), DEFAULT_EXPORT_FORMAT)


def _optional_guid(value: Optional[str]) -> Optional[str]:
    # Upstream sends "" for unbound reports
    if not value:
        return None
    return str(uuid.UUID(str(value)))


def _list_result(items: List[Any]) -> ApiResult:
    return ApiResult.ok(items, count=len(items))


# Field mapping from raw API payloads

def map_workspace(group: Dict[str, Any]) -> WorkspaceInfo:
    return WorkspaceInfo(
        id=group["id"],
        name=group.get("name") or "",
        is_read_only=group.get("isReadOnly") or False,
        is_on_dedicated_capacity=group.get("isOnDedicatedCapacity") or False,
        type="Workspace"
    )


def map_report(report: Dict[str, Any]) -> ReportInfo:
    return ReportInfo(
        id=report["id"],
        name=report.get("name") or "",
        web_url=report.get("webUrl"),
        embed_url=report.get("embedUrl"),
        dataset_id=_optional_guid(report.get("datasetId")),
        report_type=report.get("reportType")
    )


def map_dataset(dataset: Dict[str, Any]) -> DatasetInfo:
    return DatasetInfo(
        id=dataset["id"],
        name=dataset.get("name") or "",
        web_url=dataset.get("webUrl"),
        is_refreshable=dataset.get("isRefreshable"),
        is_on_prem_gateway_required=dataset.get("isOnPremGatewayRequired"),
        configured_by=dataset.get("configuredBy")
    )


def map_dashboard(dashboard: Dict[str, Any]) -> DashboardInfo:
    return DashboardInfo(
        id=dashboard["id"],
        display_name=dashboard.get("displayName") or "",
        web_url=dashboard.get("webUrl"),
        embed_url=dashboard.get("embedUrl"),
        is_read_only=dashboard.get("isReadOnly") or False
    )


def map_tile(tile: Dict[str, Any]) -> TileInfo:
    return TileInfo(
        id=tile["id"],
        title=tile.get("title") or "",
        embed_url=tile.get("embedUrl"),
        report_id=_optional_guid(tile.get("reportId")),
        dataset_id=_optional_guid(tile.get("datasetId"))
    )


def map_refresh(refresh: Dict[str, Any]) -> RefreshHistoryInfo:
    return RefreshHistoryInfo(
        request_id=refresh.get("requestId"),
        start_time=refresh.get("startTime"),
        end_time=refresh.get("endTime"),
        status=refresh.get("status"),
        refresh_type=refresh.get("refreshType"),
        service_exception_json=refresh.get("serviceExceptionJson")
    )


def map_capacity(capacity: Dict[str, Any]) -> CapacityInfo:
    return CapacityInfo(
        id=capacity["id"],
        display_name=capacity.get("displayName") or "",
        sku=capacity.get("sku"),
        state=capacity.get("state"),
        region=capacity.get("region")
    )


def map_gateway(gateway: Dict[str, Any]) -> GatewayInfo:
    public_key = gateway.get("publicKey") or {}
    return GatewayInfo(
        id=gateway["id"],
        name=gateway.get("name") or "",
        type=gateway.get("type"),
        public_key=public_key.get("exponent")
    )


def map_dataflow(dataflow: Dict[str, Any]) -> DataflowInfo:
    return DataflowInfo(
        object_id=dataflow["objectId"],
        name=dataflow.get("name") or "",
        description=dataflow.get("description"),
        configured_by=dataflow.get("configuredBy")
    )


class PowerBIService:
    """Proxy operations over the Power BI REST API"""

    def __init__(
        self,
        auth_manager: Optional[AuthenticationManager] = None,
        client_factory: Optional[Callable[..., PowerBIClient]] = None
    ):
        """
        Args:
            auth_manager: Token source (default: process-wide manager)
            client_factory: Builds a client from (token, api_url=...)
        """
        self.auth = auth_manager or get_auth_manager()
        self._client_factory = client_factory or PowerBIClient

    def _get_client(self) -> Optional[PowerBIClient]:
        """Client bound to a current bearer token, or None if authentication failed"""
        token_response = self.auth.get_access_token()
        if not token_response.success or not token_response.access_token:
            return None
        return self._client_factory(token_response.access_token, api_url=self.auth.config.api_url)

    def _run(self, action: str, operation: Callable[[PowerBIClient], ApiResult]) -> ApiResult:
        client = None
        try:
            client = self._get_client()
            if client is None:
                return ApiResult.fail(AUTH_FAILED_ERROR)
            return operation(client)
        except Exception as e:
            logger.exception(f"Error {action}")
            return ApiResult.fail(str(e))
        finally:
            if client is not None:
                client.close()

    def get_access_token(self) -> TokenResponse:
        return self.auth.get_access_token()

    def get_workspaces(self) -> ApiResult:
        return self._run(
            "getting workspaces",
            lambda c: _list_result([map_workspace(g) for g in c.get_groups()])
        )

    def get_reports(self, workspace_id: str) -> ApiResult:
        return self._run(
            f"getting reports for workspace {workspace_id}",
            lambda c: _list_result([map_report(r) for r in c.get_reports(workspace_id)])
        )

    def get_reports_in_my_workspace(self) -> ApiResult:
        return self._run(
            "getting reports in My Workspace",
            lambda c: _list_result([map_report(r) for r in c.get_reports()])
        )

    def get_report(self, workspace_id: str, report_id: str) -> ApiResult:
        return self._run(
            f"getting report {report_id}",
            lambda c: ApiResult.ok(map_report(c.get_report(workspace_id, report_id)))
        )

    def get_datasets(self, workspace_id: str) -> ApiResult:
        return self._run(
            f"getting datasets for workspace {workspace_id}",
            lambda c: _list_result([map_dataset(d) for d in c.get_datasets(workspace_id)])
        )

    def get_datasets_in_my_workspace(self) -> ApiResult:
        return self._run(
            "getting datasets in My Workspace",
            lambda c: _list_result([map_dataset(d) for d in c.get_datasets()])
        )

    def get_dashboards(self, workspace_id: str) -> ApiResult:
        return self._run(
            f"getting dashboards for workspace {workspace_id}",
            lambda c: _list_result([map_dashboard(d) for d in c.get_dashboards(workspace_id)])
        )

    def get_dashboards_in_my_workspace(self) -> ApiResult:
        return self._run(
            "getting dashboards in My Workspace",
            lambda c: _list_result([map_dashboard(d) for d in c.get_dashboards()])
        )

    def get_tiles(self, workspace_id: str, dashboard_id: str) -> ApiResult:
        return self._run(
            f"getting tiles for dashboard {dashboard_id}",
            lambda c: _list_result([map_tile(t) for t in c.get_tiles(workspace_id, dashboard_id)])
        )

    def get_refresh_history(self, workspace_id: str, dataset_id: str) -> ApiResult:
        return self._run(
            f"getting refresh history for dataset {dataset_id}",
            lambda c: _list_result(
                [map_refresh(r) for r in c.get_refresh_history(workspace_id, dataset_id)]
            )
        )

    def refresh_dataset(self, workspace_id: str, dataset_id: str) -> ApiResult:
        def operation(client: PowerBIClient) -> ApiResult:
            client.refresh_dataset(workspace_id, dataset_id)
            logger.info(f"Refresh triggered for dataset {dataset_id}")
            return ApiResult.ok(True)

        return self._run(f"refreshing dataset {dataset_id}", operation)

    def get_report_embed_config(self, workspace_id: str, report_id: str) -> ApiResult:
        """Look up the report and generate a view-only embed token for it"""
        def operation(client: PowerBIClient) -> ApiResult:
            report = client.get_report(workspace_id, report_id)
            embed_token = client.generate_report_token(
                workspace_id, report_id, access_level="View", allow_save_as=False
            )
            return ApiResult.ok(EmbedConfig(
                report_id=report.get("id"),
                report_name=report.get("name"),
                embed_url=report.get("embedUrl"),
                embed_token=embed_token.get("token"),
                token_expiry=embed_token.get("expiration")
            ))

        return self._run(f"getting embed config for report {report_id}", operation)

    def get_capacities(self) -> ApiResult:
        return self._run(
            "getting capacities",
            lambda c: _list_result([map_capacity(cap) for cap in c.get_capacities()])
        )

    def get_gateways(self) -> ApiResult:
        return self._run(
            "getting gateways",
            lambda c: _list_result([map_gateway(g) for g in c.get_gateways()])
        )

    def get_dataflows(self, workspace_id: str) -> ApiResult:
        return self._run(
            f"getting dataflows for workspace {workspace_id}",
            lambda c: _list_result([map_dataflow(d) for d in c.get_dataflows(workspace_id)])
        )

    def export_report(
        self,
        workspace_id: str,
        report_id: str,
        file_format: Optional[str] = "pdf"
    ) -> ApiResult:
        """
        Start an export-to-file job for a report

        Args:
            file_format: pdf, pptx or png (case-insensitive); anything else exports PDF
        """
        api_format = normalize_export_format(file_format)

        def operation(client: PowerBIClient) -> ApiResult:
            export = client.export_to_file(workspace_id, report_id, api_format)
            return ApiResult.ok(
                f"Export initiated. Export ID: {export.get('id')}, Status: {export.get('status')}"
            )

        return self._run(f"exporting report {report_id}", operation)
