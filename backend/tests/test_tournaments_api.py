import pytest

BASE = "/api/v0"


def test_create_tournament_defaults(client_and_session):
    client, _ = client_and_session

    resp = client.post(f"{BASE}/tournaments", json={"name": "  Summer League "})

    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Summer League"
    assert (body["setFormat"], body["regularSetPoints"], body["finalSetPoints"]) == (
        1,
        25,
        15,
    )


@pytest.mark.parametrize(
    "payload",
    [
        {"name": ""},
        {"name": "Cup", "setFormat": 2},
        {"name": "Cup", "regularSetPoints": 0},
        {"name": "Cup", "unknown": 1},
    ],
)
def test_create_tournament_validation(client_and_session, payload):
    client, _ = client_and_session

    resp = client.post(f"{BASE}/tournaments", json=payload)

    assert resp.status_code == 422


def test_get_and_list_tournaments(client_and_session):
    client, _ = client_and_session
    created = client.post(
        f"{BASE}/tournaments", json={"name": "Cup", "setFormat": 5}
    ).json()

    fetched = client.get(f"{BASE}/tournaments/{created['id']}").json()
    listed = client.get(f"{BASE}/tournaments").json()

    assert fetched == created
    assert [t["id"] for t in listed] == [created["id"]]


def test_unknown_tournament(client_and_session):
    client, _ = client_and_session

    resp = client.get(f"{BASE}/tournaments/missing")

    assert resp.status_code == 404
    assert resp.json()["code"] == "tournament_not_found"


def test_rename_tournament_updates_matches(client_and_session):
    client, _ = client_and_session
    t = client.post(f"{BASE}/tournaments", json={"name": "Cup"}).json()
    m = client.post(
        f"{BASE}/matches",
        json={
            "tournamentId": t["id"],
            "ourTeam": "Falcons",
            "opponentTeam": "Hawks",
            "matchDate": "2024-05-01",
            "matchTime": "18:00",
            "matchNumber": "1",
        },
    ).json()

    resp = client.patch(
        f"{BASE}/tournaments/{t['id']}", json={"name": "Cup Finals", "setFormat": 3}
    )

    assert resp.status_code == 200
    assert resp.json()["name"] == "Cup Finals"
    assert resp.json()["setFormat"] == 3
    match = client.get(f"{BASE}/matches/{m['id']}").json()
    assert match["tournament"] == "Cup Finals"


def test_patch_tournament_rejects_bad_format(client_and_session):
    client, _ = client_and_session
    t = client.post(f"{BASE}/tournaments", json={"name": "Cup"}).json()

    resp = client.patch(f"{BASE}/tournaments/{t['id']}", json={"setFormat": 4})

    assert resp.status_code == 422
