"""End-to-end tests through the HTTP API."""
import pytest

import matches.functions as match_functions
from database import MatchORM

pytestmark = pytest.mark.anyio

TOURNAMENT = {
    "name": "Copa Verão",
    "description": "Etapa aberta",
    "location": "Praia do Forte",
    "startDate": "2020-01-10T08:00:00Z",
    "endDate": "2030-01-12T18:00:00Z",
    "categories": ["misto", "duplas"],
}


async def _tournament(client, headers, **overrides):
    resp = await client.post("/tournaments/", json={**TOURNAMENT, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _match(client, headers, tid, round_name, team1, team2):
    resp = await client.post("/matches/", headers=headers, json={
        "tournamentId": tid, "category": "misto", "round": round_name,
        "team1": team1, "team2": team2,
        "date": {"seconds": 1767002400, "nanoseconds": 0},
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_register_and_me(client):
    resp = await client.post("/auth/register", json={"email": "ana@example.com", "password": "segredo123", "name": "Ana"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["profile"]["stats"]["matchesPlayed"] == 0
    assert body["profile"]["stats"]["winRate"] == 0.0
    assert body["identity"]["token"] is None

    resp = await client.post("/auth/login", json={"email": "ana@example.com", "password": "segredo123"})
    headers = {"Authorization": f"Bearer {resp.json()['identity']['token']}"}
    resp = await client.get("/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["name"] == "Ana"

    resp = await client.post("/auth/logout", headers=headers)
    assert resp.status_code == 204
    resp = await client.get("/auth/me", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "Unauthorized"


async def test_duplicate_registration_email(client):
    payload = {"email": "ana@example.com", "password": "segredo123", "name": "Ana"}
    assert (await client.post("/auth/register", json=payload)).status_code == 201
    resp = await client.post("/auth/register", json=payload)
    assert resp.status_code == 409
    assert resp.json()["code"] == "AlreadyRegistered"


async def test_full_tournament_flow(client, admin, sign_up):
    _, admin_headers = admin
    a, a_headers = await sign_up("Ana")
    b, _ = await sign_up("Bia")
    c, _ = await sign_up("Caio")
    d, _ = await sign_up("Duda")

    t = await _tournament(client, admin_headers)
    assert t["status"] == "active"
    assert t["matches"] == []

    # self-registration, then admin registration by email
    resp = await client.post(f"/tournaments/{t['id']}/participants", json={"playerId": a}, headers=a_headers)
    assert resp.status_code == 200
    for email in ("bia@example.com", "caio@example.com", "duda@example.com"):
        resp = await client.post(f"/tournaments/{t['id']}/participants", json={"email": email}, headers=admin_headers)
        assert resp.status_code == 200
    assert sorted(resp.json()["participants"]) == sorted([a, b, c, d])

    resp = await client.post(f"/tournaments/{t['id']}/participants", json={"playerId": a}, headers=a_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "AlreadyRegistered"

    final = await _match(client, admin_headers, t["id"], "final", [a], [b])
    bronze = await _match(client, admin_headers, t["id"], "bronze-match", [c], [d])
    assert final["date"].startswith("2025-12-29T10:00:00")

    resp = await client.post(f"/matches/{final['id']}/result", headers=admin_headers,
                             json={"score": "6-4 7-6", "winner": [a], "aces": {a: 3}})
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert (await client.get(f"/tournaments/{t['id']}")).json()["status"] == "active"

    resp = await client.post(f"/matches/{bronze['id']}/result", headers=admin_headers,
                             json={"score": "6-2", "winner": [d]})
    assert resp.status_code == 200

    resp = await client.get(f"/tournaments/{t['id']}")
    body = resp.json()
    assert body["status"] == "completed"
    assert body["podium"] == {"champion": [a], "runnerUp": [b], "thirdPlace": [d]}
    assert [m["id"] for m in body["matches"]] == [final["id"], bronze["id"]]

    resp = await client.get(f"/players/{a}")
    stats = resp.json()["stats"]
    assert stats["wins"] == 1
    assert stats["tournamentsWon"] == 1
    assert stats["podiumFinishes"] == 1
    assert stats["acesServed"] == 3

    resp = await client.get("/players/ranking", params={"limit": 3})
    ranking = resp.json()
    assert [e["position"] for e in ranking] == [1, 2, 3]
    assert {e["player"]["id"] for e in ranking[:2]} == {a, d}
    assert all(not e["player"]["isAdmin"] for e in ranking)

    resp = await client.get(f"/players/{a}/tournaments")
    assert [x["id"] for x in resp.json()] == [t["id"]]


async def test_result_twice_conflicts(client, admin, sign_up):
    _, admin_headers = admin
    a, _ = await sign_up("Ana")
    b, _ = await sign_up("Bia")
    t = await _tournament(client, admin_headers)
    m = await _match(client, admin_headers, t["id"], "group-stage", [a], [b])

    payload = {"score": "6-0", "winner": [b]}
    assert (await client.post(f"/matches/{m['id']}/result", json=payload, headers=admin_headers)).status_code == 200
    resp = await client.post(f"/matches/{m['id']}/result", json=payload, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "InvalidState"
    assert resp.json()["detail"] == "Esta operação não é permitida no estado atual."

    resp = await client.get(f"/players/{b}")
    assert resp.json()["stats"]["matchesPlayed"] == 1


async def test_invalid_winner_is_bad_request(client, admin, sign_up):
    _, admin_headers = admin
    a, _ = await sign_up("Ana")
    b, _ = await sign_up("Bia")
    t = await _tournament(client, admin_headers)
    m = await _match(client, admin_headers, t["id"], "group-stage", [a], [b])

    resp = await client.post(f"/matches/{m['id']}/result", json={"score": "6-0", "winner": [a, b]}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "InvalidArgument"


async def test_cancel_tournament(client, admin):
    _, admin_headers = admin
    t = await _tournament(client, admin_headers, startDate="2099-01-01T00:00:00Z", endDate="2099-01-02T00:00:00Z")
    assert t["status"] == "upcoming"

    resp = await client.put(f"/tournaments/{t['id']}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    resp = await client.put(f"/tournaments/{t['id']}/status", json={"status": "active"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "InvalidTransition"

    resp = await client.get("/tournaments/", params={"status": "cancelled"})
    assert [x["id"] for x in resp.json()] == [t["id"]]


async def test_admin_only_routes(client, admin, sign_up):
    _, admin_headers = admin
    a, a_headers = await sign_up("Ana")
    b, _ = await sign_up("Bia")

    resp = await client.post("/tournaments/", json=TOURNAMENT, headers=a_headers)
    assert resp.status_code == 403
    resp = await client.post("/tournaments/", json=TOURNAMENT)
    assert resp.status_code == 403

    t = await _tournament(client, admin_headers)
    # players register only themselves
    resp = await client.post(f"/tournaments/{t['id']}/participants", json={"playerId": b}, headers=a_headers)
    assert resp.status_code == 403
    resp = await client.get("/players/", headers=a_headers)
    assert resp.status_code == 403
    resp = await client.get("/players/", headers=admin_headers)
    assert resp.status_code == 200


async def test_unknown_records(client, admin):
    _, admin_headers = admin
    assert (await client.get("/tournaments/missing")).status_code == 404
    assert (await client.get("/matches/missing")).status_code == 404
    resp = await client.post("/matches/missing/result", json={"score": "6-0", "winner": ["x"]}, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == "NotFound"


async def test_profile_and_avatar(client, sign_up, blob_store):
    a, a_headers = await sign_up("Ana")
    b, b_headers = await sign_up("Bia")

    resp = await client.patch(f"/players/{a}", json={"age": 29, "gender": "feminino"}, headers=a_headers)
    assert resp.status_code == 200
    assert resp.json()["age"] == 29

    resp = await client.patch(f"/players/{a}", json={"name": "Outra"}, headers=b_headers)
    assert resp.status_code == 403

    resp = await client.post(f"/players/{a}/avatar", headers=a_headers,
                             files={"file": ("ana.png", b"\x89PNG fake", "image/png")})
    assert resp.status_code == 200
    assert resp.json()["avatarUrl"] == f"/media/avatars/{a}"
    assert (blob_store.root / "avatars" / a).read_bytes() == b"\x89PNG fake"

    resp = await client.post(f"/players/{a}/avatar", headers=a_headers,
                             files={"file": ("cv.pdf", b"%PDF", "application/pdf")})
    assert resp.status_code == 400


async def test_matches_listing(client, admin, sign_up):
    _, admin_headers = admin
    a, _ = await sign_up("Ana")
    b, _ = await sign_up("Bia")
    t = await _tournament(client, admin_headers)
    m = await _match(client, admin_headers, t["id"], "semi-final", [a], [b])

    resp = await client.get("/matches/", params={"tournament_id": t["id"], "round": "semi-final"})
    assert [x["id"] for x in resp.json()] == [m["id"]]

    resp = await client.post(f"/matches/{m['id']}/cancel", headers=admin_headers)
    assert resp.json()["status"] == "cancelled"


async def test_out_of_range_date_is_rejected(client, admin):
    _, admin_headers = admin
    resp = await client.post("/tournaments/", headers=admin_headers,
                             json={**TOURNAMENT, "startDate": {"seconds": 10**20, "nanoseconds": 0}})
    assert resp.status_code == 422
    assert (await client.get("/tournaments/")).json() == []


async def test_stale_result_is_concurrent_update(client, admin, sign_up, sessionmaker, monkeypatch):
    _, admin_headers = admin
    a, _ = await sign_up("Ana")
    b, _ = await sign_up("Bia")
    t = await _tournament(client, admin_headers)
    m = await _match(client, admin_headers, t["id"], "group-stage", [a], [b])

    real_get_tournament = match_functions.get_tournament

    # another admin cancels the match while the result is being recorded
    async def cancelled_meanwhile(session, tournament_id):
        async with sessionmaker() as other:
            match = await other.get(MatchORM, m["id"])
            match.status = "cancelled"
            await other.commit()
        return await real_get_tournament(session, tournament_id)

    monkeypatch.setattr(match_functions, "get_tournament", cancelled_meanwhile)

    resp = await client.post(f"/matches/{m['id']}/result", json={"score": "6-0", "winner": [a]}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "ConcurrentUpdate"

    monkeypatch.undo()
    assert (await client.get(f"/matches/{m['id']}")).json()["status"] == "cancelled"
    for pid in (a, b):
        assert (await client.get(f"/players/{pid}")).json()["stats"]["matchesPlayed"] == 0
