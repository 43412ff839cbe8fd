"""
Tests for the Flask HTTP service.
"""

from __future__ import annotations

import pytest

from hwpdoc.contracts import TOOL_EXTRACT_RICH, TOOL_INSPECT_METADATA
from hwpdoc.server import create_app

from .builders import b64


@pytest.fixture
def client(tmp_path):
    app = create_app({
        "TESTING": True,
        "HWPDOC_LOG_LEVEL": "WARNING",
        "HWPDOC_RESOURCE_DIR": str(tmp_path),
    })
    return app.test_client()


class TestServiceInfo:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_info(self, client):
        data = client.get("/api/info").get_json()
        assert data["supported_formats"] == ["auto", "hwp", "hwpx"]
        assert "rich_extraction" in data["capabilities"]

    def test_tools(self, client):
        data = client.get("/api/tools").get_json()
        assert [t["name"] for t in data["tools"]][-1] == TOOL_EXTRACT_RICH


class TestToolEndpoint:

    def test_call_tool(self, client, simple_hwpx):
        response = client.post(
            f"/api/tools/{TOOL_INSPECT_METADATA}",
            json={"base64": b64(simple_hwpx)},
        )
        data = response.get_json()
        assert response.status_code == 200
        assert data["isError"] is False
        assert data["structuredContent"]["sections"] == 2

    def test_resource_dir_from_config(self, client, rich_hwpx, tmp_path):
        response = client.post(
            f"/api/tools/{TOOL_EXTRACT_RICH}",
            json={"base64": b64(rich_hwpx), "images": "resource"},
        )
        payload = response.get_json()["structuredContent"]["blocks"][2]["payload"]
        assert payload["path"].startswith(str(tmp_path.resolve()))

    def test_invalid_input_status(self, client):
        response = client.post(f"/api/tools/{TOOL_INSPECT_METADATA}", json={})
        assert response.status_code == 400
        assert response.get_json()["isError"] is True

    def test_parse_failure_status(self, client):
        response = client.post(
            f"/api/tools/{TOOL_INSPECT_METADATA}",
            json={"base64": b64(b"garbage")},
        )
        assert response.status_code == 422
        error = response.get_json()["structuredContent"]["error"]
        assert error["kind"] == "parse_failed"

    def test_unknown_tool(self, client):
        response = client.post("/api/tools/hwp.convert", json={})
        assert response.status_code == 404
        error = response.get_json()["structuredContent"]["error"]
        assert error["message"] == "tool not implemented: hwp.convert"


class TestRpcEndpoint:

    def test_request(self, client):
        response = client.post("/rpc", json={
            "jsonrpc": "2.0", "id": 1, "method": "tools/list",
        })
        assert response.status_code == 200
        assert len(response.get_json()["result"]["tools"]) == 4

    def test_notification(self, client):
        response = client.post("/rpc", json={
            "jsonrpc": "2.0", "method": "notifications/initialized",
        })
        assert response.status_code == 204

    def test_unparsable_body(self, client):
        response = client.post(
            "/rpc", data="{nope", content_type="application/json"
        )
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == -32700
