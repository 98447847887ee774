"""Integration tests for /timetable, /travel/extract and /preferences."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
from fastapi.testclient import TestClient

from backend.tourplan.llm.extractor import OpenAITripExtractor

TIMETABLE_QUERY = "/timetable?service_id=1008&departure_date=2025-03-01&departure_time=07:00"


class TestTimetableRoute:
    """GET /timetable"""

    def test_found_timetable_is_200(self, client: TestClient) -> None:
        response = client.get(TIMETABLE_QUERY)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["operator"] == "Sri Lanka Railways"
        assert body["data"]["service_id"] == "1008"

    def test_failed_lookup_is_400_with_echoed_request(
        self, client: TestClient, timetable_handler
    ) -> None:
        def refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        timetable_handler["handler"] = refused

        response = client.get(TIMETABLE_QUERY)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"]["error"]
        assert body["data"]["departure_date"] == "2025-03-01"

    def test_bad_time_format_is_400(self, client: TestClient) -> None:
        response = client.get(
            "/timetable?service_id=1008&departure_date=2025-03-01&departure_time=7am"
        )

        assert response.status_code == 400
        assert "departure_time" in response.json()["message"]


class TestTravelExtractRoute:
    """POST /travel/extract"""

    def test_no_llm_key_is_503(self, client: TestClient, auth_headers) -> None:
        response = client.post(
            "/travel/extract", json={"message": "Colombo to Kandy"}, headers=auth_headers
        )

        assert response.status_code == 503
        assert response.json()["success"] is False

    def test_extracts_and_merges_defaults(self, app, client: TestClient, auth_headers) -> None:
        completion = MagicMock()
        completion.choices = [MagicMock()]
        completion.choices[0].message.content = json.dumps(
            {"origin": "Colombo Fort", "destination": "Kandy", "departure_date": None}
        )
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(return_value=completion)
        app.state.extractor = OpenAITripExtractor(api_key="test-key", client=openai_client)

        response = client.post(
            "/travel/extract",
            json={
                "message": "Colombo Fort to Kandy please",
                "defaults": {"departureDate": "2025-03-01"},
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["extracted"] == {
            "origin": "Colombo Fort",
            "destination": "Kandy",
            "departureDate": "2025-03-01",
            "departureTime": None,
        }
        assert data["missingFields"] == ["departureTime"]
        assert data["raw"]["origin"] == "Colombo Fort"

    def test_malformed_llm_output_is_502(self, app, client: TestClient, auth_headers) -> None:
        completion = MagicMock()
        completion.choices = [MagicMock()]
        completion.choices[0].message.content = "sorry, I can't"
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(return_value=completion)
        app.state.extractor = OpenAITripExtractor(api_key="test-key", client=openai_client)

        response = client.post(
            "/travel/extract", json={"message": "somewhere"}, headers=auth_headers
        )

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to parse LLM response"


class TestPreferencesRoutes:
    """GET/PUT /preferences/scores"""

    def test_get_returns_defaults(self, client: TestClient, auth_headers) -> None:
        response = client.get("/preferences/scores", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["history"] == 0.5

    def test_put_updates_partially(self, client: TestClient, auth_headers) -> None:
        response = client.put(
            "/preferences/scores", json={"adventure": 0.8}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["adventure"] == 0.8
        assert data["nature"] == 0.5

    def test_put_out_of_range_is_400(self, client: TestClient, auth_headers) -> None:
        response = client.put("/preferences/scores", json={"nature": 2}, headers=auth_headers)

        assert response.status_code == 400
