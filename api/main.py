"""
Power BI Explorer API

FastAPI application proxying a fixed set of Power BI REST API operations.
Every /api/powerbi route answers 200 with the {success, data, error, count}
envelope; failures are reported inside the envelope.
"""

from fastapi import FastAPI, HTTPException, Depends, APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from datetime import datetime
from uuid import UUID
from pathlib import Path
import sys

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from core.service import PowerBIService
from config.settings import API_HOST, API_PORT, API_PREFIX, API_VERSION, configure_logging

configure_logging()

# Initialize FastAPI
app = FastAPI(
    title="Power BI Explorer API",
    description="Explorer and admin console backend for the Power BI REST API",
    version=API_VERSION
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix=API_PREFIX, tags=["powerbi"])

_service: Optional[PowerBIService] = None


def get_service() -> PowerBIService:
    """Get or create the process-wide service"""
    global _service
    if _service is None:
        _service = PowerBIService()
    return _service


# Health check endpoints
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Power BI Explorer API",
        "version": API_VERSION,
        "status": "running",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check(service: PowerBIService = Depends(get_service)):
    """Health check endpoint"""
    token = await run_in_threadpool(service.get_access_token)
    if not token.success:
        raise HTTPException(status_code=503, detail=f"Service unhealthy: {token.error}")

    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "auth": "configured"
    }


@router.get("/token")
async def get_token(service: PowerBIService = Depends(get_service)):
    """Get access token for the Power BI API"""
    result = await run_in_threadpool(service.get_access_token)
    return result.to_dict()


# Workspace endpoints
@router.get("/workspaces")
async def get_workspaces(service: PowerBIService = Depends(get_service)):
    """Get all workspaces (groups)"""
    result = await run_in_threadpool(service.get_workspaces)
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/reports")
async def get_reports(workspace_id: UUID, service: PowerBIService = Depends(get_service)):
    """Get reports in a workspace"""
    result = await run_in_threadpool(service.get_reports, str(workspace_id))
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/reports/{report_id}")
async def get_report(
    workspace_id: UUID,
    report_id: UUID,
    service: PowerBIService = Depends(get_service)
):
    """Get a specific report"""
    result = await run_in_threadpool(service.get_report, str(workspace_id), str(report_id))
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/datasets")
async def get_datasets(workspace_id: UUID, service: PowerBIService = Depends(get_service)):
    """Get datasets in a workspace"""
    result = await run_in_threadpool(service.get_datasets, str(workspace_id))
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/dashboards")
async def get_dashboards(workspace_id: UUID, service: PowerBIService = Depends(get_service)):
    """Get dashboards in a workspace"""
    result = await run_in_threadpool(service.get_dashboards, str(workspace_id))
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/dashboards/{dashboard_id}/tiles")
async def get_tiles(
    workspace_id: UUID,
    dashboard_id: UUID,
    service: PowerBIService = Depends(get_service)
):
    """Get tiles in a dashboard"""
    result = await run_in_threadpool(service.get_tiles, str(workspace_id), str(dashboard_id))
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/datasets/{dataset_id}/refreshes")
async def get_refresh_history(
    workspace_id: UUID,
    dataset_id: UUID,
    service: PowerBIService = Depends(get_service)
):
    """Get refresh history for a dataset"""
    result = await run_in_threadpool(
        service.get_refresh_history, str(workspace_id), str(dataset_id)
    )
    return result.to_dict()


@router.post("/workspaces/{workspace_id}/datasets/{dataset_id}/refresh")
async def refresh_dataset(
    workspace_id: UUID,
    dataset_id: UUID,
    service: PowerBIService = Depends(get_service)
):
    """Trigger dataset refresh"""
    result = await run_in_threadpool(service.refresh_dataset, str(workspace_id), str(dataset_id))
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/reports/{report_id}/embed")
async def get_report_embed_config(
    workspace_id: UUID,
    report_id: UUID,
    service: PowerBIService = Depends(get_service)
):
    """Get embed configuration for a report"""
    result = await run_in_threadpool(
        service.get_report_embed_config, str(workspace_id), str(report_id)
    )
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/dataflows")
async def get_dataflows(workspace_id: UUID, service: PowerBIService = Depends(get_service)):
    """Get dataflows in a workspace"""
    result = await run_in_threadpool(service.get_dataflows, str(workspace_id))
    return result.to_dict()


@router.post("/workspaces/{workspace_id}/reports/{report_id}/export")
async def export_report(
    workspace_id: UUID,
    report_id: UUID,
    format: str = "pdf",
    service: PowerBIService = Depends(get_service)
):
    """Export report to file (pdf, pptx or png)"""
    result = await run_in_threadpool(
        service.export_report, str(workspace_id), str(report_id), format
    )
    return result.to_dict()


# My Workspace endpoints
@router.get("/reports")
async def get_reports_in_my_workspace(service: PowerBIService = Depends(get_service)):
    """Get reports in My Workspace"""
    result = await run_in_threadpool(service.get_reports_in_my_workspace)
    return result.to_dict()


@router.get("/datasets")
async def get_datasets_in_my_workspace(service: PowerBIService = Depends(get_service)):
    """Get datasets in My Workspace"""
    result = await run_in_threadpool(service.get_datasets_in_my_workspace)
    return result.to_dict()


@router.get("/dashboards")
async def get_dashboards_in_my_workspace(service: PowerBIService = Depends(get_service)):
    """Get dashboards in My Workspace"""
    result = await run_in_threadpool(service.get_dashboards_in_my_workspace)
    return result.to_dict()


# Tenant-level endpoints
@router.get("/capacities")
async def get_capacities(service: PowerBIService = Depends(get_service)):
    """Get all capacities"""
    result = await run_in_threadpool(service.get_capacities)
    return result.to_dict()


@router.get("/gateways")
async def get_gateways(service: PowerBIService = Depends(get_service)):
    """Get all gateways"""
    result = await run_in_threadpool(service.get_gateways)
    return result.to_dict()


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
