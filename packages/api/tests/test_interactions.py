"""Tests for interaction endpoints."""

from __future__ import annotations

from unittest.mock import patch
from uuid import uuid4

from postgrest.exceptions import APIError

from homematch_api.services import interaction_service
from tests.conftest import make_supabase

INTERACTIONS = "homematch_api.routers.v1.interactions.get_supabase_client"


def test_record_interaction_replaces_previous(client, auth_headers, members, user_id, household_id):
    property_id = str(uuid4())
    stored = {"id": str(uuid4()), "user_id": user_id, "property_id": property_id, "interaction_type": "like"}
    mock = make_supabase({"user_profiles": members, "user_property_interactions": [stored]})
    with patch(INTERACTIONS, return_value=mock):
        response = client.post(
            "/v1/interactions",
            json={"propertyId": property_id, "type": "like"},
            headers=auth_headers,
        )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["interaction"]["id"] == stored["id"]

    chains = mock.chains["user_property_interactions"]
    assert chains[0].delete.called
    inserted = chains[1].insert.call_args.args[0]
    assert inserted == {
        "user_id": user_id,
        "property_id": property_id,
        "interaction_type": "like",
        "household_id": household_id,
    }


def test_record_interaction_reports_mutual(members, user_id, partner_id):
    mock = make_supabase({
        "user_profiles": members,
        "user_property_interactions": [{"id": "i1", "user_id": partner_id}],
    })
    result = interaction_service.record_interaction(mock, user_id, str(uuid4()), "like")
    assert result["mutual"] == {"is_mutual": True, "partner_user_id": partner_id}


def test_record_interaction_survives_delete_failure(members, user_id):
    mock = make_supabase({"user_profiles": members, "user_property_interactions": [{"id": "i1"}]})
    failing = make_supabase({"user_property_interactions": APIError({"message": "rls", "code": "42501"})})
    calls = {"n": 0}

    def _table(name):
        calls["n"] += 1
        if name == "user_property_interactions" and calls["n"] == 1:
            return failing.table(name)
        return mock.table(name)

    client = make_supabase()
    client.table.side_effect = _table
    result = interaction_service.record_interaction(client, user_id, str(uuid4()), "skip")
    assert result["interaction"] == {"id": "i1"}


def test_record_interaction_validates_body(client, auth_headers):
    response = client.post(
        "/v1/interactions",
        json={"propertyId": str(uuid4()), "type": "superlike"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_record_interaction_insert_failure(client, auth_headers, members):
    mock = make_supabase({"user_profiles": members, "user_property_interactions": []})
    with patch(INTERACTIONS, return_value=mock):
        response = client.post(
            "/v1/interactions",
            json={"propertyId": str(uuid4()), "type": "view"},
            headers=auth_headers,
        )
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Failed to record interaction"


def test_missing_type_returns_400(client, auth_headers):
    response = client.get("/v1/interactions", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Missing type query parameter"


def test_summary_buckets(client, auth_headers):
    rows = [
        {"interaction_type": "like", "count": 4},
        {"interaction_type": "skip", "count": 2},
        {"interaction_type": "dislike", "count": 1},
        {"interaction_type": "view", "count": 9},
    ]
    mock = make_supabase(rpc_data={"get_user_interaction_summary": rows})
    with patch(INTERACTIONS, return_value=mock):
        response = client.get("/v1/interactions?type=summary", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"liked": 4, "passed": 3, "viewed": 9}


def test_summary_failure_returns_500(client, auth_headers):
    mock = make_supabase(rpc_data={"get_user_interaction_summary": RuntimeError("down")})
    with patch(INTERACTIONS, return_value=mock):
        response = client.get("/v1/interactions?type=summary", headers=auth_headers)
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Failed to fetch summary"


def test_list_full_page_sets_next_cursor(client, auth_headers):
    rows = [
        {"created_at": f"2024-06-0{i}T00:00:00Z", "property": [{"id": f"p{i}", "address": f"{i} Main"}]}
        for i in (3, 2)
    ]
    mock = make_supabase({"user_property_interactions": rows})
    with patch(INTERACTIONS, return_value=mock):
        response = client.get(
            "/v1/interactions?type=like&limit=2&cursor=2024-06-04T00:00:00Z",
            headers=auth_headers,
        )

    assert response.status_code == 200
    body = response.json()
    assert [i["id"] for i in body["data"]["items"]] == ["p3", "p2"]
    assert body["data"]["next_cursor"] == "2024-06-02T00:00:00Z"
    chain = mock.chains["user_property_interactions"][0]
    chain.lt.assert_called_once_with("created_at", "2024-06-04T00:00:00Z")
    chain.eq.assert_any_call("interaction_type", "like")


def test_list_partial_page_has_no_cursor(client, auth_headers):
    rows = [{"created_at": "2024-06-01T00:00:00Z", "property": {"id": "p1"}}, {"created_at": "x", "property": None}]
    mock = make_supabase({"user_property_interactions": rows})
    with patch(INTERACTIONS, return_value=mock):
        response = client.get("/v1/interactions?type=view&limit=5", headers=auth_headers)

    data = response.json()["data"]
    assert data["items"] == [{"id": "p1"}]
    assert data["next_cursor"] is None


def test_list_rejects_unknown_type(client, auth_headers):
    response = client.get("/v1/interactions?type=liked", headers=auth_headers)
    assert response.status_code == 400


def test_reset_clears_touched_households(client, auth_headers, user_id, household_id):
    other_household = str(uuid4())
    deleted = [
        {"id": "a", "household_id": household_id},
        {"id": "b", "household_id": other_household},
        {"id": "c", "household_id": None},
    ]
    mock = make_supabase({
        "user_profiles": [{"id": user_id, "household_id": household_id}],
        "user_property_interactions": deleted,
    })
    with (
        patch(INTERACTIONS, return_value=mock),
        patch("homematch_api.services.couples_service.clear_household_cache") as clear,
    ):
        response = client.delete("/v1/interactions", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": True, "count": 3}
    cleared = {c.args[0] for c in clear.call_args_list}
    assert cleared == {household_id, other_household}


def test_reset_failure_returns_500(client, auth_headers):
    mock = make_supabase({"user_property_interactions": RuntimeError("down")})
    with patch(INTERACTIONS, return_value=mock):
        response = client.delete("/v1/interactions", headers=auth_headers)
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Failed to reset interactions"


def test_record_like_looks_up_household_once(members, user_id, partner_id):
    mock = make_supabase({
        "user_profiles": members,
        "user_property_interactions": [{"id": "i1", "user_id": partner_id}],
    })
    interaction_service.record_interaction(mock, user_id, str(uuid4()), "like")
    assert len(mock.chains["user_profiles"]) == 1


def test_record_without_household_skips_mutual_check(user_id):
    mock = make_supabase({
        "user_profiles": [{"id": user_id, "household_id": None}],
        "user_property_interactions": [{"id": "i1"}],
    })
    result = interaction_service.record_interaction(mock, user_id, str(uuid4()), "like")

    assert result["mutual"] == {"is_mutual": False, "partner_user_id": None}
    # delete + insert only
    assert len(mock.chains["user_property_interactions"]) == 2
    assert len(mock.chains["user_profiles"]) == 1
