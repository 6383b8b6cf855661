"""
Tests for the Power BI proxy operations.

Covers:
- Authentication failure short-circuits every operation
- Field mapping and the count == len(data) envelope rule
- Upstream failures reported in the envelope
- Export format normalization
"""

from unittest.mock import MagicMock

import pytest

from config.settings import PowerBIConfig
from core.models import TokenResponse
from core.powerbi_client import PowerBIApiError
from core.service import AUTH_FAILED_ERROR, PowerBIService, normalize_export_format

WS = "11111111-1111-1111-1111-111111111111"
REPORT = "22222222-2222-2222-2222-222222222222"
DATASET = "33333333-3333-3333-3333-333333333333"
DASHBOARD = "44444444-4444-4444-4444-444444444444"


def _auth(success=True):
    auth = MagicMock()
    auth.config = PowerBIConfig(api_url="https://api.powerbi.com/")
    if success:
        auth.get_access_token.return_value = TokenResponse(success=True, access_token="tok")
    else:
        auth.get_access_token.return_value = TokenResponse(success=False, error="bad credentials")
    return auth


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def factory(client):
    return MagicMock(return_value=client)


@pytest.fixture
def service(factory):
    return PowerBIService(auth_manager=_auth(), client_factory=factory)


ALL_OPERATIONS = [
    ("get_workspaces", ()),
    ("get_reports", (WS,)),
    ("get_reports_in_my_workspace", ()),
    ("get_report", (WS, REPORT)),
    ("get_datasets", (WS,)),
    ("get_datasets_in_my_workspace", ()),
    ("get_dashboards", (WS,)),
    ("get_dashboards_in_my_workspace", ()),
    ("get_tiles", (WS, DASHBOARD)),
    ("get_refresh_history", (WS, DATASET)),
    ("refresh_dataset", (WS, DATASET)),
    ("get_report_embed_config", (WS, REPORT)),
    ("get_capacities", ()),
    ("get_gateways", ()),
    ("get_dataflows", (WS,)),
    ("export_report", (WS, REPORT, "pdf")),
]


class TestAuthenticationFailure:
    @pytest.mark.parametrize("operation,args", ALL_OPERATIONS)
    def test_no_upstream_call(self, operation, args):
        factory = MagicMock()
        service = PowerBIService(auth_manager=_auth(success=False), client_factory=factory)

        result = getattr(service, operation)(*args)

        assert result.success is False
        assert result.error == AUTH_FAILED_ERROR
        assert result.data is None
        factory.assert_not_called()


class TestListOperations:
    def test_workspaces(self, service, client, factory):
        client.get_groups.return_value = [
            {"id": WS, "name": "Sales", "isReadOnly": False, "isOnDedicatedCapacity": True},
            {"id": "55555555-5555-5555-5555-555555555555"},
        ]

        result = service.get_workspaces()

        assert result.success is True
        assert result.count == len(result.data) == 2
        data = result.to_dict()["data"]
        assert data[0] == {
            "id": WS,
            "name": "Sales",
            "isReadOnly": False,
            "isOnDedicatedCapacity": True,
            "type": "Workspace",
        }
        assert data[1]["name"] == ""
        assert data[1]["isReadOnly"] is False
        factory.assert_called_once_with("tok", api_url="https://api.powerbi.com/")
        client.close.assert_called_once()

    def test_reports_empty_dataset_id_is_null(self, service, client):
        client.get_reports.return_value = [
            {"id": REPORT, "name": "Revenue", "datasetId": "", "reportType": "PowerBIReport",
             "webUrl": "https://app.powerbi.com/r", "embedUrl": "https://app.powerbi.com/e"},
            {"id": "66666666-6666-6666-6666-666666666666", "name": "Costs", "datasetId": DATASET},
        ]

        result = service.get_reports(WS)

        client.get_reports.assert_called_once_with(WS)
        data = result.to_dict()["data"]
        assert data[0]["datasetId"] is None
        assert data[0]["reportType"] == "PowerBIReport"
        assert data[1]["datasetId"] == DATASET
        assert result.count == 2

    def test_reports_in_my_workspace(self, service, client):
        client.get_reports.return_value = []

        result = service.get_reports_in_my_workspace()

        client.get_reports.assert_called_once_with()
        assert result.success is True
        assert result.data == []
        assert result.count == 0

    def test_tiles_optional_ids(self, service, client):
        client.get_tiles.return_value = [
            {"id": "t1", "title": "KPI", "reportId": REPORT, "datasetId": None},
            {"id": "t2", "reportId": "", "datasetId": DATASET},
        ]

        data = service.get_tiles(WS, DASHBOARD).to_dict()["data"]

        assert data[0]["reportId"] == REPORT
        assert data[0]["datasetId"] is None
        assert data[1] == {"id": "t2", "title": "", "embedUrl": None, "reportId": None, "datasetId": DATASET}

    def test_refresh_history(self, service, client):
        client.get_refresh_history.return_value = [
            {"requestId": "r1", "refreshType": "ViaApi", "status": "Completed",
             "startTime": "2024-01-01T10:00:00Z", "endTime": "2024-01-01T10:05:00Z"},
            {"requestId": "r2", "refreshType": "Scheduled", "status": "Unknown", "startTime": "2024-01-02T10:00:00Z"},
        ]

        result = service.get_refresh_history(WS, DATASET)
        data = result.to_dict()["data"]

        assert result.count == 2
        assert data[0]["status"] == "Completed"
        assert data[0]["startTime"].startswith("2024-01-01T10:00:00")
        assert data[1]["endTime"] is None

    def test_gateways_public_key_exponent(self, service, client):
        client.get_gateways.return_value = [
            {"id": "g1", "name": "OnPrem", "type": "Resource", "publicKey": {"exponent": "AQAB", "modulus": "xyz"}},
            {"id": "g2", "name": "NoKey"},
        ]

        data = service.get_gateways().to_dict()["data"]

        assert data[0]["publicKey"] == "AQAB"
        assert data[1]["publicKey"] is None

    def test_capacities_and_dataflows(self, service, client):
        client.get_capacities.return_value = [
            {"id": "c1", "displayName": "P1", "sku": "P1", "state": "Active", "region": "West Europe"},
        ]
        client.get_dataflows.return_value = [
            {"objectId": "d1", "name": "Staging", "configuredBy": "someone@contoso.com"},
        ]

        capacities = service.get_capacities()
        dataflows = service.get_dataflows(WS)

        assert capacities.to_dict()["data"][0]["state"] == "Active"
        assert dataflows.to_dict()["data"][0] == {
            "objectId": "d1",
            "name": "Staging",
            "description": None,
            "configuredBy": "someone@contoso.com",
        }
        assert capacities.count == 1 and dataflows.count == 1


class TestSingleObjectOperations:
    def test_get_report(self, service, client):
        client.get_report.return_value = {"id": REPORT, "name": "Revenue", "datasetId": DATASET}

        result = service.get_report(WS, REPORT)

        assert result.success is True
        assert result.count is None
        assert result.to_dict()["data"]["datasetId"] == DATASET

    def test_refresh_dataset(self, service, client):
        result = service.refresh_dataset(WS, DATASET)

        client.refresh_dataset.assert_called_once_with(WS, DATASET)
        assert result.success is True
        assert result.data is True

    def test_embed_config(self, service, client):
        client.get_report.return_value = {"id": REPORT, "name": "Revenue", "embedUrl": "https://embed"}
        client.generate_report_token.return_value = {"token": "H4sI...", "expiration": "2024-01-01T13:00:00Z"}

        result = service.get_report_embed_config(WS, REPORT)

        client.generate_report_token.assert_called_once_with(
            WS, REPORT, access_level="View", allow_save_as=False
        )
        data = result.to_dict()["data"]
        assert data["reportId"] == REPORT
        assert data["reportName"] == "Revenue"
        assert data["embedToken"] == "H4sI..."
        assert data["tokenExpiry"].startswith("2024-01-01T13:00:00")

    def test_export_message(self, service, client):
        client.export_to_file.return_value = {"id": "exp-1", "status": "NotStarted"}

        result = service.export_report(WS, REPORT, "PNG")

        client.export_to_file.assert_called_once_with(WS, REPORT, "PNG")
        assert result.data == "Export initiated. Export ID: exp-1, Status: NotStarted"

    def test_export_defaults_to_pdf(self, service, client):
        client.export_to_file.return_value = {"id": "exp-2", "status": "Running"}

        service.export_report(WS, REPORT)

        client.export_to_file.assert_called_once_with(WS, REPORT, "PDF")


class TestUpstreamFailure:
    def test_api_error_in_envelope(self, service, client):
        client.get_datasets.side_effect = PowerBIApiError("HTTP 403: Forbidden", status_code=403)

        result = service.get_datasets(WS)

        assert result.success is False
        assert result.error == "HTTP 403: Forbidden"
        assert result.count is None
        client.close.assert_called_once()

    def test_unexpected_exception_in_envelope(self, service, client):
        client.get_dashboards.side_effect = KeyError("id")

        result = service.get_dashboards_in_my_workspace()

        assert result.success is False
        assert result.error

    def test_client_construction_failure_in_envelope(self):
        factory = MagicMock(side_effect=RuntimeError("client construction failed"))
        service = PowerBIService(auth_manager=_auth(), client_factory=factory)

        result = service.get_workspaces()

        assert result.success is False
        assert result.error == "client construction failed"

    def test_token_passthrough(self, service):
        assert service.get_access_token().access_token == "tok"


class TestExportFormat:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "PDF"),
            ("", "PDF"),
            ("pdf", "PDF"),
            ("PPTX", "PPTX"),
            ("pptx", "PPTX"),
            ("Png", "PNG"),
            ("docx", "PDF"),
            ("xlsx", "PDF"),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_export_format(value) == expected
