"""Tests for neighborhood endpoints."""

from __future__ import annotations

from unittest.mock import patch

from postgrest.exceptions import APIError

from tests.conftest import make_supabase

NEIGHBORHOODS = "homematch_api.routers.v1.neighborhoods.get_supabase_client"


def _square(x0, y0, size):
    return {
        "type": "Polygon",
        "coordinates": [[[x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size], [x0, y0]]],
    }


def test_vibes_paginates_with_range(client, auth_headers):
    vibe = {"id": "v1", "neighborhood_id": "n1", "tagline": "Leafy and calm"}
    mock = make_supabase({"neighborhood_vibes": [vibe]})
    with patch(NEIGHBORHOODS, return_value=mock):
        response = client.get("/v1/neighborhoods/vibes?limit=10&offset=20", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == [vibe]
    chain = mock.chains["neighborhood_vibes"][0]
    chain.range.assert_called_once_with(20, 29)


def test_vibes_filter_by_neighborhood_skips_range(client, auth_headers):
    mock = make_supabase({"neighborhood_vibes": []})
    with patch(NEIGHBORHOODS, return_value=mock):
        response = client.get("/v1/neighborhoods/vibes?neighborhood_id=n1", headers=auth_headers)

    assert response.status_code == 200
    chain = mock.chains["neighborhood_vibes"][0]
    chain.eq.assert_called_once_with("neighborhood_id", "n1")
    chain.range.assert_not_called()


def test_vibes_missing_table_returns_503(client, auth_headers):
    error = APIError({"message": 'relation "neighborhood_vibes" does not exist', "code": "42P01"})
    mock = make_supabase({"neighborhood_vibes": error})
    with patch(NEIGHBORHOODS, return_value=mock):
        response = client.get("/v1/neighborhoods/vibes", headers=auth_headers)

    assert response.status_code == 503
    assert response.json()["error"] == {
        "code": "SERVICE_UNAVAILABLE",
        "message": "Neighborhood vibes not initialized",
    }


def test_vibes_other_errors_return_500(client, auth_headers):
    mock = make_supabase({"neighborhood_vibes": APIError({"message": "timeout", "code": "57014"})})
    with patch(NEIGHBORHOODS, return_value=mock):
        response = client.get("/v1/neighborhoods/vibes", headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Failed to fetch neighborhood vibes"


def test_vibes_requires_auth(client):
    response = client.get("/v1/neighborhoods/vibes")
    assert response.status_code == 401


def test_map_returns_mece_boundaries(client, auth_headers):
    rows = [
        {"id": "big", "name": "Downtown", "city": "Austin", "state": "TX", "bounds": _square(0, 0, 0.1)},
        {"id": "inner", "name": "Rainey", "city": "Austin", "state": "TX", "bounds": _square(0.01, 0.01, 0.01)},
        {"id": "dup", "name": "Rainey Street", "city": "Austin", "state": "TX", "bounds": _square(0.01, 0.01, 0.01)},
    ]
    mock = make_supabase({"neighborhoods": rows})
    with patch(NEIGHBORHOODS, return_value=mock):
        response = client.get("/v1/neighborhoods/map?city=Austin&state=tx", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert [n["id"] for n in data["neighborhoods"]] == ["inner", "big"]
    assert data["debug"] == {"total": 3, "parsed": 3, "overlap_removed": 1}
    chain = mock.chains["neighborhoods"][0]
    chain.eq.assert_called_once_with("state", "TX")


def test_map_is_cached(client, auth_headers):
    mock = make_supabase({"neighborhoods": [{"id": "a", "name": "A", "bounds": _square(0, 0, 0.01)}]})
    with patch(NEIGHBORHOODS, return_value=mock):
        client.get("/v1/neighborhoods/map?city=Austin", headers=auth_headers)
        client.get("/v1/neighborhoods/map?city=austin", headers=auth_headers)
    assert mock.table.call_count == 1
