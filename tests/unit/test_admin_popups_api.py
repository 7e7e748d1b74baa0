"""
Tests for the admin popups API.

Covers status codes for the lifecycle outcomes: saved, demoted,
conflict pending, decision answered, rejected, not found and remote
failure.
"""

from fastapi.testclient import TestClient

from src.adapters.memory_remote import InMemoryContentRemote

BASE = "/api/admin/popups"

TEXT_POPUP = {"type": "text", "title_text": "Admissions", "content_text": "Apply by June"}


def _create(client: TestClient, **overrides: object) -> dict:
    response = client.post(BASE, json={**TEXT_POPUP, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


class TestListPopups:
    def test_empty(self, client: TestClient) -> None:
        response = client.get(BASE)

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}

    def test_status_filter(self, client: TestClient, remote: InMemoryContentRemote) -> None:
        remote.seed("popup", {**TEXT_POPUP, "status": "deleted"})
        remote.seed("popup", {**TEXT_POPUP, "status": "inactive"})

        response = client.get(BASE, params={"status": "deleted"})

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["status"] == "deleted"

    def test_first_list_reads_remote_once(
        self, client: TestClient, remote: InMemoryContentRemote
    ) -> None:
        remote.seed("popup", {**TEXT_POPUP, "status": "inactive"})

        client.get(BASE)

        assert [call for call in remote.calls if call[0] == "list"] == [
            ("list", "popup", None, None)
        ]

    def test_all_means_no_filter(
        self, client: TestClient, remote: InMemoryContentRemote
    ) -> None:
        remote.seed("popup", {**TEXT_POPUP, "status": "deleted"})
        remote.seed("popup", {**TEXT_POPUP, "status": "inactive"})

        response = client.get(BASE, params={"status": "all"})

        assert response.json()["total"] == 2

    def test_remote_failure_is_502(
        self, client: TestClient, remote: InMemoryContentRemote
    ) -> None:
        remote.fail("list")

        response = client.get(BASE)

        assert response.status_code == 502
        assert response.json()["detail"]["errors"][0]["code"] == "persistence_failed"


class TestCreatePopup:
    def test_complete_popup_activates(self, client: TestClient) -> None:
        data = _create(client, status="active")

        assert data["item"]["status"] == "active"
        assert data["item"]["id"] == "1"
        assert data["violations"] == []

    def test_incomplete_popup_is_demoted(self, client: TestClient) -> None:
        data = _create(client, content_text="", status="active")

        assert data["item"]["status"] == "inactive"
        assert data["violations"][0]["field"] == "content_text"
        assert "Incomplete details" in data["message"]

    def test_second_active_popup_needs_decision(
        self, client: TestClient, remote: InMemoryContentRemote
    ) -> None:
        _create(client, status="active")

        response = client.post(BASE, json={**TEXT_POPUP, "status": "active"})

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["existing_id"] == "1"
        assert detail["decision_id"]
        assert "already an active popup" in detail["message"]
        assert len(remote.records["popup"]) == 1

    def test_invalid_status_is_422(self, client: TestClient) -> None:
        response = client.post(BASE, json={**TEXT_POPUP, "status": "draft"})

        assert response.status_code == 422

    def test_remote_failure_is_502(
        self, client: TestClient, remote: InMemoryContentRemote
    ) -> None:
        remote.fail("create")

        response = client.post(BASE, json=TEXT_POPUP)

        assert response.status_code == 502
        assert "simulated create failure" in response.json()["detail"]["errors"][0]["message"]


class TestConflictDecisions:
    def test_confirm_swaps_active_popup(self, client: TestClient) -> None:
        first = _create(client, status="active")["item"]
        decision = client.post(BASE, json={**TEXT_POPUP, "status": "active"}).json()["detail"]

        response = client.post(f"{BASE}/conflicts/{decision['decision_id']}/confirm")

        assert response.status_code == 200
        assert response.json()["item"]["status"] == "active"
        statuses = {p["id"]: p["status"] for p in client.get(BASE).json()["items"]}
        assert statuses[first["id"]] == "inactive"
        assert list(statuses.values()).count("active") == 1

    def test_cancel_saves_inactive(self, client: TestClient) -> None:
        first = _create(client, status="active")["item"]
        decision = client.post(BASE, json={**TEXT_POPUP, "status": "active"}).json()["detail"]

        response = client.post(f"{BASE}/conflicts/{decision['decision_id']}/cancel")

        assert response.status_code == 200
        assert response.json()["item"]["status"] == "inactive"
        statuses = {p["id"]: p["status"] for p in client.get(BASE).json()["items"]}
        assert statuses[first["id"]] == "active"

    def test_unknown_decision_is_404(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/conflicts/nope/confirm")

        assert response.status_code == 404
        assert response.json()["detail"]["errors"][0]["code"] == "decision_not_found"


class TestUpdateAndStatus:
    def test_update_fields(self, client: TestClient) -> None:
        popup = _create(client)["item"]

        response = client.put(f"{BASE}/{popup['id']}", json={"title_text": "Renamed"})

        assert response.status_code == 200
        assert response.json()["item"]["title_text"] == "Renamed"
        assert response.json()["item"]["content_text"] == "Apply by June"

    def test_update_unknown_is_404(self, client: TestClient) -> None:
        response = client.put(f"{BASE}/999", json={"title_text": "x"})

        assert response.status_code == 404

    def test_type_change_is_400(self, client: TestClient) -> None:
        popup = _create(client)["item"]

        response = client.put(f"{BASE}/{popup['id']}", json={"type": "video"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "type_immutable"

    def test_activating_incomplete_popup_is_400(self, client: TestClient) -> None:
        popup = _create(client, content_text=None)["item"]

        response = client.post(f"{BASE}/{popup['id']}/status", json={"status": "active"})

        assert response.status_code == 400
        body = response.json()["detail"]
        assert body["errors"][0]["code"] == "validation_failed"
        assert body["violations"][0]["field"] == "content_text"

    def test_delete_restore_and_remove(
        self, client: TestClient, remote: InMemoryContentRemote
    ) -> None:
        popup = _create(client)["item"]
        url = f"{BASE}/{popup['id']}"

        assert client.delete(url).status_code == 400
        assert client.post(f"{url}/status", json={"status": "deleted"}).status_code == 200
        restored = client.post(f"{url}/status", json={"status": "inactive"})
        assert restored.json()["item"]["status"] == "inactive"
        client.post(f"{url}/status", json={"status": "deleted"})
        removed = client.delete(url)

        assert removed.status_code == 200
        assert remote.records["popup"] == {}

    def test_invalid_transition_is_400(self, client: TestClient) -> None:
        popup = _create(client, status="active")["item"]

        response = client.post(f"{BASE}/{popup['id']}/status", json={"status": "deleted"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "invalid_transition"


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
