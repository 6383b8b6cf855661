"""
Route tests for the Power BI Explorer API.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_service
from core.models import ApiResult, ReportInfo, TokenResponse, WorkspaceInfo

PREFIX = "/api/powerbi"
WS = "11111111-1111-1111-1111-111111111111"
REPORT = "22222222-2222-2222-2222-222222222222"
DATASET = "33333333-3333-3333-3333-333333333333"


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "running"


def test_health_ok(client, service):
    service.get_access_token.return_value = TokenResponse(success=True, access_token="tok")
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_health_unavailable(client, service):
    service.get_access_token.return_value = TokenResponse(success=False, error="Failed")
    assert client.get("/health").status_code == 503


def test_token(client, service):
    service.get_access_token.return_value = TokenResponse(success=False, error="Power BI configuration is incomplete")

    body = client.get(f"{PREFIX}/token").json()

    assert body == {
        "success": False,
        "accessToken": None,
        "expiresOn": None,
        "error": "Power BI configuration is incomplete",
    }


def test_workspaces_envelope(client, service):
    service.get_workspaces.return_value = ApiResult.ok(
        [WorkspaceInfo(id=WS, name="Sales")], count=1
    )

    response = client.get(f"{PREFIX}/workspaces")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["error"] is None
    assert body["data"][0]["isOnDedicatedCapacity"] is False


def test_reports_in_workspace(client, service):
    service.get_reports.return_value = ApiResult.ok(
        [ReportInfo(id=REPORT, name="Revenue", dataset_id=None)], count=1
    )

    body = client.get(f"{PREFIX}/workspaces/{WS}/reports").json()

    service.get_reports.assert_called_once_with(WS)
    assert body["data"][0]["datasetId"] is None


def test_failure_is_still_200(client, service):
    service.get_capacities.return_value = ApiResult.fail("Failed to authenticate")

    response = client.get(f"{PREFIX}/capacities")

    assert response.status_code == 200
    assert response.json() == {"success": False, "data": None, "error": "Failed to authenticate", "count": None}


def test_invalid_guid_rejected(client, service):
    response = client.get(f"{PREFIX}/workspaces/not-a-guid/datasets")
    assert response.status_code == 422
    service.get_datasets.assert_not_called()


def test_refresh_is_post(client, service):
    service.refresh_dataset.return_value = ApiResult.ok(True)

    body = client.post(f"{PREFIX}/workspaces/{WS}/datasets/{DATASET}/refresh").json()

    service.refresh_dataset.assert_called_once_with(WS, DATASET)
    assert body["data"] is True


@pytest.mark.parametrize("query,expected", [("", "pdf"), ("?format=pptx", "pptx"), ("?format=PNG", "PNG")])
def test_export_passes_format(client, service, query, expected):
    service.export_report.return_value = ApiResult.ok("Export initiated. Export ID: e, Status: NotStarted")

    client.post(f"{PREFIX}/workspaces/{WS}/reports/{REPORT}/export{query}")

    service.export_report.assert_called_once_with(WS, REPORT, expected)


@pytest.mark.parametrize(
    "path,method_name,args",
    [
        ("/reports", "get_reports_in_my_workspace", ()),
        ("/datasets", "get_datasets_in_my_workspace", ()),
        ("/dashboards", "get_dashboards_in_my_workspace", ()),
        ("/gateways", "get_gateways", ()),
        (f"/workspaces/{WS}/reports/{REPORT}", "get_report", (WS, REPORT)),
        (f"/workspaces/{WS}/datasets", "get_datasets", (WS,)),
        (f"/workspaces/{WS}/dashboards", "get_dashboards", (WS,)),
        (f"/workspaces/{WS}/dashboards/{REPORT}/tiles", "get_tiles", (WS, REPORT)),
        (f"/workspaces/{WS}/datasets/{DATASET}/refreshes", "get_refresh_history", (WS, DATASET)),
        (f"/workspaces/{WS}/reports/{REPORT}/embed", "get_report_embed_config", (WS, REPORT)),
        (f"/workspaces/{WS}/dataflows", "get_dataflows", (WS,)),
    ],
)
def test_get_routes(client, service, path, method_name, args):
    getattr(service, method_name).return_value = ApiResult.ok([], count=0)

    response = client.get(f"{PREFIX}{path}")

    assert response.status_code == 200
    getattr(service, method_name).assert_called_once_with(*args)
    assert response.json()["count"] == 0
