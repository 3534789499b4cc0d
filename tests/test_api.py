"""HTTP contract tests for the customer endpoints."""

from conftest import API_HEADERS


def create(client, **overrides):
    payload = {"name": "Alice Zhang", "phone": "13800000000"}
    payload.update(overrides)
    resp = client.post("/customers", json=payload, headers=API_HEADERS)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_requires_api_key(client):
    resp = client.post("/customers", json={"name": "Alice", "phone": "13800000000"})
    assert resp.status_code == 401

    resp = client.get("/customers", headers={"x-api-key": "wrong"})
    assert resp.status_code == 401


def test_create_and_fetch(client):
    body = create(client)

    assert body["current_status"] == "NEW"
    assert body["customer_type"] == "NEW_CUSTOMER"
    resp = client.get(f"/customers/{body['customer_id']}", headers=API_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice Zhang"


def test_create_validates_payload(client):
    resp = client.post("/customers", json={"name": "", "phone": "1"}, headers=API_HEADERS)
    assert resp.status_code == 422


def test_duplicate_certificate_is_conflict(client):
    create(client, id_card="110101199001011234", certificate_type="N1_FORKLIFT")

    resp = client.post(
        "/customers",
        json={
            "name": "Bo Li",
            "phone": "13900000001",
            "id_card": "110101199001011234",
            "certificate_type": "N1_FORKLIFT",
        },
        headers=API_HEADERS,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DUPLICATE_CUSTOMER_CERTIFICATE"


def test_transition_and_history(client):
    customer_id = create(client)["customer_id"]

    resp = client.post(
        f"/customers/{customer_id}/status-transition",
        json={"to_status": "NOTIFIED", "reason": "called"},
        headers=API_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["current_status"] == "NOTIFIED"

    resp = client.get(f"/customers/{customer_id}/status-history", headers=API_HEADERS)
    assert resp.status_code == 200
    assert resp.headers["x-total-count"] == "2"
    latest, initial = resp.json()
    assert latest["from_status"] == "NEW"
    assert latest["to_status"] == "NOTIFIED"
    assert latest["to_status_display"] == "Notified"
    assert latest["changed_by"] == "agent1"
    assert initial["from_status"] is None
    assert initial["from_status_display"] is None

    resp = client.get(
        f"/customers/{customer_id}/status-history",
        params={"newest_first": False, "limit": 1},
        headers=API_HEADERS,
    )
    assert resp.headers["x-total-count"] == "2"
    assert [row["to_status"] for row in resp.json()] == ["NEW"]


def test_invalid_transition_returns_reason(client):
    customer_id = create(client)["customer_id"]

    resp = client.post(
        f"/customers/{customer_id}/status-transition",
        json={"to_status": "CERTIFIED"},
        headers=API_HEADERS,
    )
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_STATUS_TRANSITION"
    assert detail["message"] == (
        "Invalid transition from New to Certified. "
        "Valid transitions are: Notified, Aborted, Certified Elsewhere"
    )

    history = client.get(f"/customers/{customer_id}/status-history", headers=API_HEADERS)
    assert history.headers["x-total-count"] == "1"


def test_unknown_status_code_is_unprocessable(client):
    customer_id = create(client)["customer_id"]

    resp = client.post(
        f"/customers/{customer_id}/status-transition",
        json={"to_status": "BUSINESS_DONE"},
        headers=API_HEADERS,
    )
    assert resp.status_code == 422


def test_missing_customer_is_404(client):
    resp = client.post(
        "/customers/nope/status-transition",
        json={"to_status": "NOTIFIED"},
        headers=API_HEADERS,
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == {
        "code": "RESOURCE_NOT_FOUND",
        "message": "Customer not found with id: nope",
    }
    assert client.get("/customers/nope/status-history", headers=API_HEADERS).status_code == 404


def test_transition_queries(client):
    customer_id = create(client)["customer_id"]

    resp = client.get(f"/customers/{customer_id}/valid-transitions", headers=API_HEADERS)
    assert [item["code"] for item in resp.json()] == ["NOTIFIED", "ABORTED", "CERTIFIED_ELSEWHERE"]

    resp = client.get(f"/customers/{customer_id}/can-transition-to/NOTIFIED", headers=API_HEADERS)
    assert resp.json() == {"valid": True, "message": None}

    resp = client.get(f"/customers/{customer_id}/can-transition-to/NEW", headers=API_HEADERS)
    body = resp.json()
    assert body["valid"] is False
    assert body["message"] == "Customer is already in status: New"


def test_status_registry_is_public(client):
    resp = client.get("/statuses")
    assert resp.status_code == 200
    registry = {entry["code"]: entry for entry in resp.json()}
    assert set(registry) == {"NEW", "NOTIFIED", "ABORTED", "SUBMITTED", "CERTIFIED", "CERTIFIED_ELSEWHERE"}
    assert registry["CERTIFIED"]["allowed_targets"] == []
    assert registry["SUBMITTED"]["display_name"] == "Submitted"


def test_soft_delete_and_restore(client):
    customer_id = create(client)["customer_id"]

    assert client.delete(f"/customers/{customer_id}", headers=API_HEADERS).status_code == 204
    assert client.get(f"/customers/{customer_id}", headers=API_HEADERS).status_code == 404

    resp = client.post(f"/customers/{customer_id}/restore", headers=API_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["deleted_at"] is None

    resp = client.post(f"/customers/{customer_id}/restore", headers=API_HEADERS)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_update_leaves_status_alone(client):
    customer_id = create(client)["customer_id"]

    resp = client.patch(
        f"/customers/{customer_id}",
        json={"address": "Shanghai", "customer_agent": "agent-a"},
        headers=API_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["address"] == "Shanghai"
    assert resp.json()["current_status"] == "NEW"


def test_search_statistics_and_recent(client):
    first = create(client, name="Bo Li", phone="13900000001")["customer_id"]
    create(client, name="Chen Wu", phone="13900000002")
    client.post(
        f"/customers/{first}/status-transition",
        json={"to_status": "ABORTED", "reason": "not interested"},
        headers=API_HEADERS,
    )

    resp = client.get("/customers", params={"status": ["ABORTED"]}, headers=API_HEADERS)
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["customer_id"] == first

    resp = client.get("/customers/statistics", headers=API_HEADERS)
    stats = resp.json()
    assert stats["total_customers"] == 2
    assert stats["status_counts"]["ABORTED"] == 1
    assert stats["status_counts"]["NEW"] == 1
    assert stats["recently_updated_count"] == 2

    resp = client.get("/customers/recent", params={"days": 1}, headers=API_HEADERS)
    assert resp.json()["total"] == 2


def test_correlation_id_is_echoed(client):
    resp = client.get("/health", headers={"x-correlation-id": "corr-123"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers["x-correlation-id"] == "corr-123"


def test_metrics_exposes_transition_counters(client):
    customer_id = create(client)["customer_id"]
    client.post(
        f"/customers/{customer_id}/status-transition",
        json={"to_status": "NOTIFIED"},
        headers=API_HEADERS,
    )

    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "status_transitions_total" in resp.text
    assert "customers_created_total" in resp.text


def test_out_of_range_paging_is_rejected(client):
    create(client)

    assert client.get("/customers/recent", params={"days": 10**9}, headers=API_HEADERS).status_code == 422
    assert client.get("/customers/recent", params={"days": -1}, headers=API_HEADERS).status_code == 422
    assert client.get("/customers", params={"page": 10**18}, headers=API_HEADERS).status_code == 422
    assert client.get("/customers", params={"page": 0}, headers=API_HEADERS).status_code == 422

    resp = client.get("/customers/recent", params={"days": 3650}, headers=API_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 1


def test_history_page_is_bounded(client):
    customer_id = create(client)["customer_id"]

    resp = client.get(
        f"/customers/{customer_id}/status-history",
        params={"page": 10**18},
        headers=API_HEADERS,
    )
    assert resp.status_code == 422


def test_search_wildcards_match_literally(client):
    create(client, name="Bo Li", phone="13900000001")

    resp = client.get("/customers", params={"q": "%"}, headers=API_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 0


def test_lifecycle_routes_bind_log_context(client, monkeypatch):
    from custrack.common.logging import actor_ctx, customer_id_ctx
    from custrack.services.customers import main

    customer_id = create(client)["customer_id"]
    seen = []

    fetch = main.service.get_customer

    def capture(target_id):
        seen.append((customer_id_ctx.get(), actor_ctx.get()))
        return fetch(target_id)

    monkeypatch.setattr(main.service, "delete_customer", capture)
    monkeypatch.setattr(main.service, "restore_customer", capture)

    assert client.delete(f"/customers/{customer_id}", headers=API_HEADERS).status_code == 204
    assert client.post(f"/customers/{customer_id}/restore", headers=API_HEADERS).status_code == 200
    assert seen == [(customer_id, "agent1"), (customer_id, "agent1")]
    assert customer_id_ctx.get() == ""
