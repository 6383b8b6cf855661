"""
Power BI Explorer MCP Server

FastMCP server exposing the explorer's Power BI operations as tools.
Every tool returns the {success, data, error, count} envelope as JSON text.
"""

import json
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from fastmcp import FastMCP
from config.settings import configure_logging
from core.models import ApiResult
from core.service import PowerBIService

configure_logging()

# Create MCP server
mcp = FastMCP("powerbi-explorer")

# Service (will be set on first use)
_service: Optional[PowerBIService] = None


def get_service() -> PowerBIService:
    """Get or create the explorer service"""
    global _service
    if _service is None:
        _service = PowerBIService()
    return _service


def to_json(result: ApiResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


@mcp.tool()
def list_workspaces() -> str:
    """
    List all Power BI workspaces the service principal can access.

    Returns:
        JSON envelope with id, name, isReadOnly and isOnDedicatedCapacity per workspace
    """
    return to_json(get_service().get_workspaces())


@mcp.tool()
def list_reports(workspace_id: Optional[str] = None) -> str:
    """
    List reports in a workspace, or in My Workspace when no workspace is given.

    Args:
        workspace_id: Workspace GUID (optional)
    """
    service = get_service()
    if workspace_id:
        return to_json(service.get_reports(workspace_id))
    return to_json(service.get_reports_in_my_workspace())


@mcp.tool()
def list_datasets(workspace_id: Optional[str] = None) -> str:
    """
    List datasets in a workspace, or in My Workspace when no workspace is given.

    Args:
        workspace_id: Workspace GUID (optional)
    """
    service = get_service()
    if workspace_id:
        return to_json(service.get_datasets(workspace_id))
    return to_json(service.get_datasets_in_my_workspace())


@mcp.tool()
def list_dashboards(workspace_id: Optional[str] = None) -> str:
    """
    List dashboards in a workspace, or in My Workspace when no workspace is given.

    Args:
        workspace_id: Workspace GUID (optional)
    """
    service = get_service()
    if workspace_id:
        return to_json(service.get_dashboards(workspace_id))
    return to_json(service.get_dashboards_in_my_workspace())


@mcp.tool()
def list_tiles(workspace_id: str, dashboard_id: str) -> str:
    """List the tiles on a dashboard."""
    return to_json(get_service().get_tiles(workspace_id, dashboard_id))


@mcp.tool()
def get_refresh_history(workspace_id: str, dataset_id: str) -> str:
    """
    Get the refresh history of a dataset.

    Args:
        workspace_id: Workspace GUID
        dataset_id: Dataset GUID

    Returns:
        JSON envelope with requestId, startTime, endTime, status and refreshType per refresh
    """
    return to_json(get_service().get_refresh_history(workspace_id, dataset_id))


@mcp.tool()
def refresh_dataset(workspace_id: str, dataset_id: str) -> str:
    """Trigger an asynchronous refresh of a dataset."""
    return to_json(get_service().refresh_dataset(workspace_id, dataset_id))


@mcp.tool()
def list_capacities() -> str:
    """List Premium / Embedded capacities."""
    return to_json(get_service().get_capacities())


@mcp.tool()
def list_gateways() -> str:
    """List on-premises data gateways."""
    return to_json(get_service().get_gateways())


@mcp.tool()
def list_dataflows(workspace_id: str) -> str:
    """List dataflows in a workspace."""
    return to_json(get_service().get_dataflows(workspace_id))


@mcp.tool()
def export_report(workspace_id: str, report_id: str, format: str = "pdf") -> str:
    """
    Start exporting a report to a file.

    Args:
        workspace_id: Workspace GUID
        report_id: Report GUID
        format: pdf, pptx or png (anything else exports PDF)
    """
    return to_json(get_service().export_report(workspace_id, report_id, format))


if __name__ == "__main__":
    # Run the MCP server
    mcp.run()
