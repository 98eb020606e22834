"""Tests for the FastAPI server."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from qrmenu.server import create_app
from qrmenu.services.menu_resolver import PLACEHOLDER_LOGO


@pytest.fixture
def client(store, spice_garden_menu):
    """Test client over an in-memory store and a fake static host."""
    files = {"/restaurants/spice-garden/menu.json": json.dumps(spice_garden_menu)}

    def handler(request: httpx.Request) -> httpx.Response:
        body = files.get(request.url.path)
        if request.method == "GET" and body is not None:
            return httpx.Response(200, text=body)
        return httpx.Response(404)

    static = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://menus.test"
    )
    app = create_app(store=store, http_client=static)
    with TestClient(app) as test_client:
        yield test_client


def receive_until_result(websocket):
    """Collect messages up to and including the next command result."""
    views = []
    while True:
        message = websocket.receive_json()
        if message["type"] == "view":
            views.append(message["view"])
        else:
            return views, message


class TestMenuApi:
    """Test diner endpoints."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["store"] == "memory"

    def test_get_menu(self, client):
        """Test menu resolution through the API."""
        data = client.get("/api/menu/spice-garden").json()

        assert data["source"] == "static"
        assert data["categories"][0]["items"][0]["name"] == "Samosa"
        assert data["restaurant"]["logoUrl"] == PLACEHOLDER_LOGO

    def test_get_menu_from_query(self, client):
        """Test the QR-code URL form."""
        data = client.get("/api/menu", params={"r": "spice-garden"}).json()
        assert data["restaurant"]["id"] == "spice-garden"

    def test_unknown_restaurant_gets_builtin(self, client):
        """Test that the API always answers with a document."""
        response = client.get("/api/menu/nowhere")

        assert response.status_code == 200
        assert response.json()["source"] == "builtin"
        assert response.json()["restaurant"]["id"] == "nowhere"

    def test_view(self, client):
        """Test the rendered view with a search."""
        view = client.get("/api/menu/spice-garden/view", params={"q": "samo"}).json()

        assert view["title"] == "Spice Garden - Menu"
        assert view["sections"][0]["items"][0]["price_text"] == "₹3.50"

    def test_summary(self, client):
        """Test order summaries, skipping unknown lines."""
        response = client.post(
            "/api/menu/spice-garden/summary",
            json={
                "table": "4",
                "items": [{"key": "starters/samosa-0", "quantity": 2}, {"key": "Pizza"}],
            },
        )
        data = response.json()

        assert data["count"] == 2
        assert data["total"] == 7.0
        assert data["skipped"] == ["Pizza"]
        assert "2 x Samosa  ₹7.00" in data["summary"]

    def test_menu_items_carry_their_keys(self, client):
        """Test that served items have ids a client can select by."""
        item = client.get("/api/menu/spice-garden").json()["categories"][0]["items"][0]
        assert item["id"] == "samosa-0"

    def test_logo_placeholder(self, client):
        """Test the logo lookup fallback."""
        data = client.get("/api/restaurants/spice-garden/logo").json()
        assert data["logo_url"] == PLACEHOLDER_LOGO


class TestOwnerWebSocket:
    """Test the live owner dashboard."""

    def test_link_and_edit(self, client):
        """Test linking a restaurant and adding a category over the socket."""
        with client.websocket_connect("/owner/ws?owner_id=owner-1") as websocket:
            first = websocket.receive_json()
            assert first["type"] == "view"
            assert first["view"]["status"] == "No restaurant linked yet."

            websocket.send_json(
                {"action": "link_restaurant", "restaurant_id": "cafe-one", "name": "Cafe One"}
            )
            views, result = receive_until_result(websocket)
            assert result == {
                "type": "result",
                "action": "link_restaurant",
                "ok": True,
                "status": "Linked.",
            }
            assert views[-1]["state"] == "synced"
            assert views[-1]["restaurant_name"] == "Cafe One"

            websocket.send_json({"action": "create_category", "name": "Coffee"})
            views, result = receive_until_result(websocket)
            assert result["ok"] is True
            assert [c["name"] for c in views[-1]["categories"]] == ["Coffee"]

            websocket.send_json({"action": "create_item", "category_id": "missing", "name": "X", "price": 1})
            _views, result = receive_until_result(websocket)
            assert result["ok"] is False
            assert result["status"] == "Category not found."

    def test_unknown_command(self, client):
        """Test that unknown actions are reported, not fatal."""
        with client.websocket_connect("/owner/ws?owner_id=owner-1") as websocket:
            websocket.receive_json()
            websocket.send_json({"action": "drop_everything"})
            _views, message = receive_until_result(websocket)

            assert message["type"] == "error"
            assert message["code"] == 404
