"""
tests.test_api

In-process HTTP tests: the service boots, guards run inside the write path,
and policy errors map to 401/403/400 with a JSON body.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import pytest

from staplus_policy.api.app import create_app
from staplus_policy.settings import Settings


@asynccontextmanager
async def _client(tmp_path: Path, **switches: bool) -> AsyncIterator[httpx.AsyncClient]:
    settings = Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'staplus.db'}",
        **switches,
    )
    app = create_app(settings=settings)

    # httpx's ASGITransport does not run the lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


async def _auth(
    client: httpx.AsyncClient, subject: str, *, admin: bool = False
) -> dict[str, str]:
    r = await client.post("/v1/dev/token", json={"subject": subject, "admin": admin})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.mark.asyncio
async def test_health_endpoints(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        r = await client.get("/healthz")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.headers["x-request-id"]

        r = await client.get("/readyz")
        assert r.status_code == 200
        assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_dev_token_names_the_party(tmp_path: Path, alice_id: str) -> None:
    async with _client(tmp_path) as client:
        r = await client.post("/v1/dev/token", json={"subject": "alice"})
        assert r.status_code == 200
        body = r.json()
        assert body["party_id"] == alice_id
        assert body["is_admin"] is False

        r = await client.post("/v1/dev/token", json={"subject": "root", "admin": True})
        assert r.json()["is_admin"] is True

        r = await client.post("/v1/dev/token", json={"subject": "   "})
        assert r.status_code == 422


@pytest.mark.asyncio
async def test_conformance_follows_switches(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        classes = (await client.get("/v1/conformance")).json()["conformance"]
        assert not any("#Enforce" in c for c in classes)

    async with _client(tmp_path, enforce_ownership=True) as client:
        classes = (await client.get("/v1/conformance")).json()["conformance"]
        assert [c for c in classes if "#Enforce" in c] == [
            "https://github.com/securedimensions/FROST-Server-PLUS#EnforceOwnership"
        ]


@pytest.mark.asyncio
async def test_owned_entity_lifecycle(tmp_path: Path, alice_id: str) -> None:
    async with _client(tmp_path, enforce_ownership=True) as client:
        alice = await _auth(client, "alice")
        bob = await _auth(client, "bob")

        r = await client.post("/v1/Things", json={"name": "weather station"})
        assert r.status_code == 401
        assert r.json() == {"detail": "Authentication required", "kind": "UNAUTHENTICATED"}

        r = await client.post("/v1/Things", json={"name": "weather station"}, headers=alice)
        assert r.status_code == 201
        thing = r.json()
        assert thing["Party"] == {"id": alice_id}
        assert thing["name"] == "weather station"

        # The derived owner was registered on the fly.
        r = await client.get(f"/v1/Parties/{alice_id}")
        assert r.status_code == 200
        assert r.json()["authId"] == alice_id

        url = f"/v1/Things/{thing['id']}"
        r = await client.patch(url, json={"name": "hijacked"}, headers=bob)
        assert r.status_code == 403
        assert r.json()["kind"] == "FORBIDDEN"

        r = await client.patch(url, json={"name": "rooftop station"}, headers=alice)
        assert r.status_code == 200
        assert r.json()["name"] == "rooftop station"

        r = await client.delete(url, headers=bob)
        assert r.status_code == 403
        r = await client.delete(url, headers=alice)
        assert r.status_code == 204
        assert (await client.get(url)).status_code == 404


@pytest.mark.asyncio
async def test_group_requires_owner_and_rejects_foreign_owner(
    tmp_path: Path, alice_id: str, bob_id: str
) -> None:
    async with _client(tmp_path, enforce_ownership=True) as client:
        alice = await _auth(client, "alice")

        r = await client.post("/v1/ObservationGroups", json={"name": "g"}, headers=alice)
        assert r.status_code == 400
        assert r.json()["detail"] == "ObservationGroup must have a Party"

        r = await client.post(
            "/v1/ObservationGroups",
            json={"name": "g", "Party": {"authId": "alice", "displayName": "Alice"}},
            headers=alice,
        )
        assert r.status_code == 201
        assert r.json()["Party"] == {"id": alice_id}

        r = await client.post(
            "/v1/Datastreams",
            json={"name": "ds", "Party": {"authId": bob_id, "displayName": "Bob"}},
            headers=alice,
        )
        assert r.status_code == 400
        assert r.json()["kind"] == "INVALID_ARGUMENT"


@pytest.mark.asyncio
async def test_unknown_targets(tmp_path: Path) -> None:
    async with _client(tmp_path, enforce_ownership=True) as client:
        alice = await _auth(client, "alice")

        assert (await client.post("/v1/Sensors", json={}, headers=alice)).status_code == 404
        r = await client.patch("/v1/Things/missing", json={"name": "x"}, headers=alice)
        assert r.status_code == 404

        r = await client.get("/healthz", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 200
        r = await client.post(
            "/v1/Things", json={}, headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_party_registration_is_idempotent(tmp_path: Path, alice_id: str) -> None:
    async with _client(tmp_path, enforce_ownership=True) as client:
        alice = await _auth(client, "alice")
        admin = await _auth(client, "root", admin=True)

        r = await client.post("/v1/Parties", json={"displayName": "Alice"}, headers=alice)
        assert r.status_code == 201
        assert r.json()["id"] == alice_id

        r = await client.post("/v1/Parties", json={"displayName": "Changed"}, headers=alice)
        assert r.status_code == 201
        assert r.json()["displayName"] == "Alice"

        r = await client.post(
            "/v1/Parties", json={"authId": "alice", "displayName": "Renamed"}, headers=admin
        )
        assert r.json()["displayName"] == "Renamed"

        r = await client.post("/v1/Parties", json={"authId": "bob"}, headers=alice)
        assert r.status_code == 400

        r = await client.delete(f"/v1/Parties/{alice_id}", headers=alice)
        assert r.status_code == 403


@pytest.mark.asyncio
async def test_licensing_end_to_end(tmp_path: Path) -> None:
    async with _client(tmp_path, enforce_licensing=True, enforce_group_licensing=True) as client:
        admin = await _auth(client, "root", admin=True)

        r = await client.get("/v1/Licenses/CC_BY")
        assert r.status_code == 200
        assert r.json()["definition"] == "https://creativecommons.org/licenses/by/3.0"

        r = await client.post("/v1/Licenses", json={"id": "CC_BY"}, headers=admin)
        assert r.status_code == 403

        for body in (
            {"id": "ds-nd", "License": {"id": "CC_BY_ND"}},
            {"id": "ds-pd", "License": {"id": "CC_PD"}},
        ):
            assert (await client.post("/v1/Datastreams", json=body)).status_code == 201
        r = await client.post(
            "/v1/ObservationGroups", json={"id": "g-by", "License": {"id": "CC_BY"}}
        )
        assert r.status_code == 201

        r = await client.post(
            "/v1/Observations",
            json={
                "result": 1,
                "Datastream": {"id": "ds-nd"},
                "ObservationGroups": [{"id": "g-by"}],
            },
        )
        assert r.status_code == 400
        assert "not compatible" in r.json()["detail"]

        r = await client.post(
            "/v1/Observations",
            json={
                "result": 2,
                "Datastream": {"id": "ds-pd"},
                "ObservationGroups": [{"id": "g-by"}],
            },
        )
        assert r.status_code == 201
        observation_id = r.json()["id"]

        group = (await client.get("/v1/ObservationGroups/g-by")).json()
        assert group["Observations"] == [{"id": observation_id}]

        # ds-pd now holds an Observation: frozen for users, still license-checked for admins.
        r = await client.patch("/v1/Datastreams/ds-pd", json={"name": "renamed"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Datastream already contains Observations"

        r = await client.patch(
            "/v1/Datastreams/ds-pd", json={"License": {"id": "CC_BY_ND"}}, headers=admin
        )
        assert r.status_code == 400
        assert "of ObservationGroup" in r.json()["detail"]

        r = await client.patch(
            "/v1/ObservationGroups/g-by", json={"License": {"id": "CC_PD"}}, headers=admin
        )
        assert r.status_code == 200
        assert r.json()["License"] == {"id": "CC_PD"}

        r = await client.patch("/v1/Datastreams/ds-pd", json={"name": "renamed"}, headers=admin)
        assert r.status_code == 200
        assert r.json()["License"] == {"id": "CC_PD"}


@pytest.mark.asyncio
async def test_audit_trail_records_denials(tmp_path: Path) -> None:
    async with _client(tmp_path, enforce_ownership=True) as client:
        alice = await _auth(client, "alice")
        bob = await _auth(client, "bob")
        admin = await _auth(client, "root", admin=True)

        thing_id = (await client.post("/v1/Things", json={}, headers=alice)).json()["id"]
        await client.patch(f"/v1/Things/{thing_id}", json={"name": "x"}, headers=bob)

        r = await client.get(f"/v1/Things/{thing_id}/audit", headers=alice)
        assert r.status_code == 403

        r = await client.get(f"/v1/Things/{thing_id}/audit", headers=admin)
        assert r.status_code == 200
        events = {e["event_type"]: e for e in r.json()}
        assert set(events) == {"ENTITY_CREATED", "POLICY_DENIED"}
        assert events["POLICY_DENIED"]["actor"] == "bob"
        assert events["POLICY_DENIED"]["details"]["kind"] == "FORBIDDEN"


# --- Module Notes -----------------------------------------------------------
# Each test gets its own SQLite file under `tmp_path`; reserved Licenses are seeded
# by the lifespan only when licensing is enforced.
