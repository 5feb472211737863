"""Tests for the Places autocomplete proxy."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest
import respx

from homematch_shared.config import settings
from homematch_api.services.places_service import normalize_prediction

AUTOCOMPLETE_URL = f"{settings.google_places_base_url}/autocomplete/json"


@pytest.fixture()
def places_key():
    with patch.object(settings, "google_maps_server_api_key", "test-key"):
        yield


def test_normalize_prediction_defaults_main_text():
    raw = {"description": "1 Main St, Austin, TX", "place_id": "abc", "types": ["street_address"]}
    assert normalize_prediction(raw) == {
        "description": "1 Main St, Austin, TX",
        "place_id": "abc",
        "types": ["street_address"],
        "matched_substrings": [],
        "structured_formatting": {"main_text": "1 Main St, Austin, TX", "secondary_text": None},
    }


def test_normalize_prediction_rejects_malformed():
    assert normalize_prediction({"description": "x", "place_id": "y"}) is None
    assert normalize_prediction("nope") is None


def test_autocomplete_unavailable_without_key(client):
    with patch.object(settings, "google_maps_server_api_key", ""):
        response = client.post("/v1/maps/places/autocomplete", json={"input": "Main"})
    assert response.status_code == 503
    assert response.json()["error"]["message"] == "Places service unavailable"


@respx.mock
def test_autocomplete_returns_predictions(client, places_key):
    route = respx.get(AUTOCOMPLETE_URL).mock(
        return_value=httpx.Response(
            200,
            json={
                "status": "OK",
                "predictions": [
                    {
                        "description": "Mission District, San Francisco, CA",
                        "place_id": "p1",
                        "types": ["neighborhood"],
                        "structured_formatting": {"main_text": "Mission District", "secondary_text": "San Francisco, CA"},
                    },
                    {"description": "broken"},
                ],
            },
        )
    )
    response = client.post(
        "/v1/maps/places/autocomplete",
        json={
            "input": "Mission",
            "location": {"lat": 37.76, "lng": -122.42},
            "radius": 5000,
            "types": ["geocode", "establishment"],
            "strictbounds": True,
        },
    )

    assert response.status_code == 200
    predictions = response.json()["data"]["predictions"]
    assert [p["place_id"] for p in predictions] == ["p1"]
    assert predictions[0]["structured_formatting"]["main_text"] == "Mission District"

    params = route.calls.last.request.url.params
    assert params["key"] == "test-key"
    assert params["location"] == "37.76,-122.42"
    assert params["radius"] == "5000"
    assert params["types"] == "geocode|establishment"
    assert params["strictbounds"] == "true"


@respx.mock
def test_autocomplete_zero_results(client, places_key):
    respx.get(AUTOCOMPLETE_URL).mock(return_value=httpx.Response(200, json={"status": "ZERO_RESULTS"}))
    response = client.post("/v1/maps/places/autocomplete", json={"input": "zzzz"})
    assert response.status_code == 200
    assert response.json()["data"]["predictions"] == []


@respx.mock
def test_autocomplete_upstream_error_status(client, places_key):
    respx.get(AUTOCOMPLETE_URL).mock(
        return_value=httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"})
    )
    response = client.post("/v1/maps/places/autocomplete", json={"input": "Main"})
    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "BAD_REQUEST",
        "message": "Places autocomplete failed",
        "details": {"status": "REQUEST_DENIED"},
    }


@respx.mock
def test_autocomplete_network_error(client, places_key):
    respx.get(AUTOCOMPLETE_URL).mock(side_effect=httpx.ConnectError("unreachable"))
    response = client.post("/v1/maps/places/autocomplete", json={"input": "Main"})
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Internal server error"


def test_autocomplete_validates_input(client):
    response = client.post("/v1/maps/places/autocomplete", json={"input": ""})
    assert response.status_code == 400
    response = client.post("/v1/maps/places/autocomplete", json={"input": "x", "radius": 60000})
    assert response.status_code == 400
