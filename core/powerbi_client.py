"""
Power BI REST API Client

Thin wrapper over the Power BI Service REST API. Each method maps to one
upstream endpoint and returns the decoded JSON payload unchanged.
"""

import requests
from typing import Dict, Any, Optional, List

from config.settings import POWERBI_API_URL, REQUEST_TIMEOUT


class PowerBIApiError(RuntimeError):
    """Raised when the Power BI API returns an error or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PowerBIClient:
    """Client for Power BI REST API"""

    def __init__(
        self,
        auth_token: str,
        api_url: str = POWERBI_API_URL,
        timeout: float = REQUEST_TIMEOUT
    ):
        """
        Initialize Power BI API client

        Args:
            auth_token: Bearer token
            api_url: Power BI API root (e.g. https://api.powerbi.com/)
            timeout: Per-request timeout in seconds
        """
        self.api_base = f"{api_url.rstrip('/')}/v1.0/myorg"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {auth_token}",
            "Content-Type": "application/json"
        })

    def close(self) -> None:
        self.session.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None
    ) -> Dict[str, Any]:
        """
        Make API request with error handling

        Args:
            method: HTTP method
            endpoint: API endpoint (relative to base URL)
            params: Query parameters
            data: Request body

        Returns:
            Response JSON data ({} for empty bodies)

        Raises:
            PowerBIApiError: If the request fails
        """
        url = f"{self.api_base}/{endpoint.lstrip('/')}"

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=data,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise PowerBIApiError(f"Request failed: {e}") from e

        if response.ok:
            return response.json() if response.text else {}

        error_msg = f"HTTP {response.status_code}"
        try:
            detail = response.json()
            upstream = detail.get("error") if isinstance(detail, dict) else None
            message = None
            if isinstance(upstream, dict):
                message = upstream.get("message") or upstream.get("code")
            error_msg = f"{error_msg}: {message or detail}"
        except ValueError:
            error_msg = f"{error_msg}: {response.text[:200]}"

        raise PowerBIApiError(error_msg, status_code=response.status_code)

    def _get_values(self, endpoint: str) -> List[Dict[str, Any]]:
        return self._request("GET", endpoint).get("value", [])

    @staticmethod
    def _scoped(workspace_id: Optional[str], resource: str) -> str:
        """Path for a resource in a workspace, or in My Workspace when none given"""
        if workspace_id:
            return f"/groups/{workspace_id}/{resource}"
        return f"/{resource}"

    def get_groups(self) -> List[Dict[str, Any]]:
        """Get workspaces the caller can access"""
        return self._get_values("/groups")

    def get_reports(self, workspace_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get reports in workspace

        Args:
            workspace_id: Workspace GUID (None for My Workspace)
        """
        return self._get_values(self._scoped(workspace_id, "reports"))

    def get_report(self, workspace_id: str, report_id: str) -> Dict[str, Any]:
        """Get report by ID"""
        return self._request("GET", f"/groups/{workspace_id}/reports/{report_id}")

    def get_datasets(self, workspace_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get datasets in workspace (None for My Workspace)"""
        return self._get_values(self._scoped(workspace_id, "datasets"))

    def get_dashboards(self, workspace_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get dashboards in workspace (None for My Workspace)"""
        return self._get_values(self._scoped(workspace_id, "dashboards"))

    def get_tiles(self, workspace_id: str, dashboard_id: str) -> List[Dict[str, Any]]:
        """Get tiles on a dashboard"""
        return self._get_values(f"/groups/{workspace_id}/dashboards/{dashboard_id}/tiles")

    def get_refresh_history(self, workspace_id: str, dataset_id: str) -> List[Dict[str, Any]]:
        """Get dataset refresh history"""
        return self._get_values(f"/groups/{workspace_id}/datasets/{dataset_id}/refreshes")

    def refresh_dataset(self, workspace_id: str, dataset_id: str) -> None:
        """
        Trigger dataset refresh

        The service accepts the request (202) and runs the refresh asynchronously.
        """
        self._request("POST", f"/groups/{workspace_id}/datasets/{dataset_id}/refreshes")

    def generate_report_token(
        self,
        workspace_id: str,
        report_id: str,
        access_level: str = "View",
        allow_save_as: bool = False
    ) -> Dict[str, Any]:
        """
        Generate an embed token for a report

        Returns:
            Token payload with "token", "tokenId" and "expiration"
        """
        return self._request(
            "POST",
            f"/groups/{workspace_id}/reports/{report_id}/GenerateToken",
            data={"accessLevel": access_level, "allowSaveAs": allow_save_as}
        )

    def get_capacities(self) -> List[Dict[str, Any]]:
        """Get capacities the caller can access"""
        return self._get_values("/capacities")

    def get_gateways(self) -> List[Dict[str, Any]]:
        """Get gateways the caller is an admin of"""
        return self._get_values("/gateways")

    def get_dataflows(self, workspace_id: str) -> List[Dict[str, Any]]:
        """Get dataflows in workspace"""
        return self._get_values(f"/groups/{workspace_id}/dataflows")

    def export_to_file(
        self,
        workspace_id: str,
        report_id: str,
        file_format: str
    ) -> Dict[str, Any]:
        """
        Start an export-to-file job

        Args:
            file_format: PDF, PPTX or PNG

        Returns:
            Export job with "id" and "status"
        """
        return self._request(
            "POST",
            f"/groups/{workspace_id}/reports/{report_id}/ExportTo",
            data={"format": file_format}
        )
