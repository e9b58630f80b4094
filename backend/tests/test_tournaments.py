from fastapi.testclient import TestClient


def _create(client: TestClient, **overrides):
    body = {"name": "Spring Open", "format": "knockout", "max_participants": 8}
    body.update(overrides)
    return client.post("/api/tournaments", json=body)


def test_create_tournament_starts_upcoming(client: TestClient):
    response = _create(client, name="  Spring Open  ")

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Spring Open"
    assert data["format"] == "knockout"
    assert data["status"] == "upcoming"
    assert data["max_participants"] == 8

    fetched = client.get(f"/api/tournaments/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == data["id"]


def test_create_tournament_rejects_unknown_format(client: TestClient):
    response = _create(client, format="swiss")
    assert response.status_code == 422


def test_create_tournament_requires_name(client: TestClient):
    response = _create(client, name="   ")
    assert response.status_code == 422
    assert any("name is required" in str(err) for err in response.json()["detail"])


def test_list_tournaments(client: TestClient):
    _create(client, name="A")
    _create(client, name="B", format="league")

    response = client.get("/api/tournaments")
    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["A", "B"]


def test_get_unknown_tournament(client: TestClient):
    response = client.get("/api/tournaments/999")
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


def test_register_participants(client: TestClient):
    tournament_id = _create(client).json()["id"]

    response = client.post(
        f"/api/tournaments/{tournament_id}/participants", json={"names": ["Ana", "Ben", "Cy"]}
    )
    assert response.status_code == 201
    assert [p["name"] for p in response.json()] == ["Ana", "Ben", "Cy"]

    listed = client.get(f"/api/tournaments/{tournament_id}/participants").json()
    assert len(listed) == 3


def test_register_rejects_blank_or_repeated_names(client: TestClient):
    tournament_id = _create(client).json()["id"]

    for names in (["Ana", "Ana"], ["Ana", " "]):
        response = client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": names})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_register_rejects_already_registered_name(client: TestClient):
    tournament_id = _create(client).json()["id"]
    client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["Ana"]})

    response = client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["Ana"]})
    assert response.status_code == 409
    assert "Already registered" in response.json()["detail"]


def test_register_rejects_overflow(client: TestClient):
    tournament_id = _create(client, max_participants=4).json()["id"]
    client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["A", "B", "C"]})

    response = client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["D", "E"]})
    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT"
    assert "full" in response.json()["detail"]


def test_registration_closes_once_live(client: TestClient):
    tournament_id = _create(client, max_participants=8).json()["id"]
    client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["A", "B", "C", "D"]})
    assert client.post(f"/api/tournaments/{tournament_id}/schedule").status_code == 201

    response = client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["E"]})
    assert response.status_code == 409


def test_tournament_detail_reports_generation_readiness(client: TestClient):
    tournament_id = _create(client, max_participants=8).json()["id"]
    client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["A", "B", "C"]})

    detail = client.get(f"/api/tournaments/{tournament_id}").json()
    assert detail["participant_count"] == 3
    assert detail["ready_to_generate"] is False

    client.post(f"/api/tournaments/{tournament_id}/participants", json={"names": ["D"]})
    assert client.get(f"/api/tournaments/{tournament_id}").json()["ready_to_generate"] is True

    client.post(f"/api/tournaments/{tournament_id}/schedule")
    detail = client.get(f"/api/tournaments/{tournament_id}").json()
    assert detail["status"] == "live"
    assert detail["ready_to_generate"] is False
