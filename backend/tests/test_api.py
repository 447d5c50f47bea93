"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from oyster.config import settings
from oyster.main import app

client = TestClient(app)


def new_card(balance=30):
    response = client.post("/api/cards", json={"initial_balance": balance})
    assert response.status_code == 201
    return response.json()["card_id"]


class TestCardEndpoints:
    """Test card lifecycle endpoints."""

    def test_create_card(self):
        response = client.post("/api/cards", json={"initial_balance": 30})
        assert response.status_code == 201
        data = response.json()
        assert data["balance"] == "30.00"
        assert data["state"] == "idle"
        assert data["open_journey"] is None

    def test_get_card(self):
        card_id = new_card()
        response = client.get(f"/api/cards/{card_id}")
        assert response.status_code == 200
        assert response.json()["card_id"] == card_id

    def test_unknown_card(self):
        response = client.get("/api/cards/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "CardNotFoundError"

    def test_load(self):
        card_id = new_card(0)
        response = client.post(f"/api/cards/{card_id}/load", json={"amount": 12.5})
        assert response.status_code == 200
        assert response.json()["balance"] == "12.50"

    def test_load_negative_amount(self):
        card_id = new_card()
        response = client.post(f"/api/cards/{card_id}/load", json={"amount": -5})
        assert response.status_code == 422

    def test_load_amount_too_large(self):
        card_id = new_card()
        response = client.post(f"/api/cards/{card_id}/load", json={"amount": 1e27})
        assert response.status_code == 422
        assert client.get(f"/api/cards/{card_id}").json()["balance"] == "30.00"

    def test_load_fraction_of_a_penny(self):
        card_id = new_card()
        response = client.post(f"/api/cards/{card_id}/load", json={"amount": 0.005})
        assert response.status_code == 422

    def test_create_card_balance_too_large(self):
        response = client.post("/api/cards", json={"initial_balance": 1e27})
        assert response.status_code == 422

    def test_delete_card(self):
        card_id = new_card()
        response = client.delete(f"/api/cards/{card_id}")
        assert response.status_code == 204
        assert response.content == b""

        assert client.get(f"/api/cards/{card_id}").status_code == 404
        response = client.delete(f"/api/cards/{card_id}")
        assert response.status_code == 404
        assert response.json()["error"] == "CardNotFoundError"

    def test_tube_journey(self):
        card_id = new_card()
        response = client.post(
            f"/api/cards/{card_id}/tap-in",
            json={"station": "Holburn", "transport_type": "tube"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == "26.80"
        assert data["state"] == "in_tube_journey"
        assert data["open_journey"]["origin"] == "Holburn"

        response = client.post(f"/api/cards/{card_id}/tap-out", json={"station": "Earl's Court"})
        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == "27.50"
        assert data["state"] == "idle"
        assert data["fare"]["fare"] == "2.50"
        assert data["fare"]["destination_zone"] == 1

    def test_bus_journey(self):
        card_id = new_card()
        response = client.post(
            f"/api/cards/{card_id}/tap-in",
            json={"station": "Chelsea", "transport_type": "bus"}
        )
        assert response.status_code == 200
        assert response.json()["balance"] == "28.20"
        assert response.json()["state"] == "idle"

    def test_insufficient_balance(self):
        card_id = new_card(2)
        response = client.post(
            f"/api/cards/{card_id}/tap-in",
            json={"station": "Holburn", "transport_type": "tube"}
        )
        assert response.status_code == 402
        assert response.json()["error"] == "InsufficientBalanceError"
        assert client.get(f"/api/cards/{card_id}").json()["balance"] == "2.00"

    def test_double_tap_in(self):
        card_id = new_card()
        client.post(f"/api/cards/{card_id}/tap-in", json={"station": "Holburn", "transport_type": "tube"})
        response = client.post(
            f"/api/cards/{card_id}/tap-in",
            json={"station": "Chelsea", "transport_type": "tube"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "JourneyAlreadyOpenError"

        data = client.get(f"/api/cards/{card_id}").json()
        assert data["balance"] == "26.80"
        assert data["open_journey"]["origin"] == "Holburn"

    def test_tap_out_without_journey(self):
        card_id = new_card()
        response = client.post(f"/api/cards/{card_id}/tap-out", json={"station": "Holburn"})
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTapOutError"

    def test_unknown_station(self):
        card_id = new_card()
        response = client.post(
            f"/api/cards/{card_id}/tap-in",
            json={"station": "Atlantis", "transport_type": "tube"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "UnknownStationError"

    def test_unknown_transport_type(self):
        card_id = new_card()
        response = client.post(
            f"/api/cards/{card_id}/tap-in",
            json={"station": "Holburn", "transport_type": "ferry"}
        )
        assert response.status_code == 422


class TestReferenceEndpoints:
    """Test station, fare and service endpoints."""

    def test_root_endpoint(self):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert data["version"] == settings.API_VERSION

    def test_health_check(self):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["datastore_status"] == "healthy"
        assert data["stations_count"] == len(settings.DEFAULT_STATIONS)

    def test_stations(self):
        response = client.get("/api/stations")
        assert response.status_code == 200
        stations = {s["name"]: s["zones"] for s in response.json()["stations"]}
        assert stations["Earl's Court"] == [1, 2]
        assert stations["Wimbledon"] == [3]

    def test_fares(self):
        response = client.get("/api/fares")
        assert response.status_code == 200
        data = response.json()
        assert data["bus_fare"] == "1.80"
        assert data["tube_max_auth"] == "3.20"

    def test_quote(self):
        response = client.post(
            "/api/fares/quote",
            json={"origin": "Earl's Court", "destination": "Wimbledon"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["fare"] == "2.25"
        assert data["origin_zone"] == 2

    def test_quote_unknown_station(self):
        response = client.post(
            "/api/fares/quote",
            json={"origin": "Holburn", "destination": "Atlantis"}
        )
        assert response.status_code == 404
