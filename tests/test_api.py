import json
from contextlib import asynccontextmanager
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from ogplink.main import create_app
from ogplink.services.codec import RoomIdCodec

from tests.conftest import ARTICLE_HTML, html_response, make_transport


async def _publish(client, links, headers=None, **room):
    payload = {"links": links, **room}
    return await client.post("/api/rooms", json=payload, headers=headers or {})


async def _sign_in(app, client, email="reader@example.com") -> str:
    response = await client.post("/api/auth/magic-link", json={"email": email})
    assert response.status_code == 202
    _, _, body = app.state.mailer.outbox[-1]
    link = next(line for line in body.splitlines() if line.startswith("http"))
    token = parse_qs(urlparse(link).query)["token"][0]

    response = await client.post("/api/auth/verify", json={"token": token})
    assert response.status_code == 200
    return response.json()["access_token"]


@asynccontextmanager
async def _client_for(settings, pages):
    app = create_app(settings, transport=make_transport(pages))
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(
            transport=transport, base_url="http://testserver"
        ) as ac:
            yield ac


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_publish_and_view_room(client):
    response = await _publish(
        client,
        [
            {"url": "https://a.example/article", "note": "read later"},
            {"url": "https://b.example/plain"},
        ],
        name="Reading list",
    )

    assert response.status_code == 201
    body = response.json()
    room_id = body["room_id"]
    assert room_id == RoomIdCodec(min_length=8).encode(1)
    assert body["url"] == f"http://testserver/{room_id}"

    response = await client.get(f"/api/rooms/{room_id}")

    assert response.status_code == 200
    room = response.json()
    assert room["room_id"] == room_id
    assert room["name"] == "Reading list"
    assert room["locked"] is False
    assert [(link["url"], link["note"]) for link in room["links"]] == [
        ("https://a.example/article", "read later"),
        ("https://b.example/plain", None),
    ]


async def test_publish_applies_default_texts(client):
    response = await _publish(client, [{"url": "https://a.example/article"}])
    room_id = response.json()["room_id"]

    room = (await client.get(f"/api/rooms/{room_id}")).json()

    assert room["name"] == "OGP Link Generator"
    assert room["description"].startswith("Enter URLs")


async def test_publish_empty_room_is_rejected(client):
    response = await _publish(client, [])

    assert response.status_code == 400
    assert response.json() == {
        "error": {"code": "EMPTY_ROOM", "message": "There are no links to publish"}
    }


async def test_publish_rejects_invalid_url(client):
    response = await _publish(client, [{"url": "not a url"}])

    assert response.status_code == 422


async def test_malformed_room_id_is_not_found(client):
    response = await client.get("/api/rooms/short")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ROOM_NOT_FOUND"
    assert "Invalid room id" in response.json()["error"]["message"]


async def test_unknown_room_id_is_not_found(client):
    response = await client.get(f"/api/rooms/{RoomIdCodec(min_length=8).encode(42)}")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Room not found"


async def test_room_cards_stream_one_line_per_link(client):
    room_id = (
        await _publish(
            client,
            [
                {"url": "https://a.example/article"},
                {"url": "https://gone.example/page", "note": "keep"},
            ],
        )
    ).json()["room_id"]

    response = await client.get(f"/api/rooms/{room_id}/cards")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    lines = [json.loads(line) for line in response.text.splitlines() if line]
    by_index = {line["index"]: line for line in lines}
    assert sorted(by_index) == [0, 1]
    assert by_index[0]["status"] == "complete"
    assert by_index[0]["card"]["title"] == "An Article"
    assert by_index[0]["card"]["siteName"] == "A Example"
    assert by_index[1]["status"] == "degraded"
    assert by_index[1]["card"] == {
        "url": "https://gone.example/page",
        "source_url": "https://gone.example/page",
        "note": "keep",
    }


async def test_preview_single_link(client):
    response = await client.get(
        "/api/ogp", params={"url": "https://a.example/article", "note": "memo"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "complete"
    assert body["card"]["description"] == "About things"
    assert body["card"]["note"] == "memo"


async def test_preview_unreachable_link_degrades(client):
    response = await client.get("/api/ogp", params={"url": "https://gone.example/"})

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


async def test_ogp_fetch_returns_site_name_alias(client):
    response = await client.post("/api/ogp_fetch", json={"url": "https://a.example/article"})

    assert response.status_code == 200
    assert response.json() == {
        "title": "An Article",
        "description": "About things",
        "image": "https://a.example/cover.png",
        "siteName": "A Example",
    }


async def test_ogp_fetch_failure_is_bad_gateway(client):
    response = await client.post("/api/ogp_fetch", json={"url": "https://gone.example/"})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "UPSTREAM_FETCH_FAILED"


async def test_signed_in_publish_is_listed_on_my_page(app, client):
    api_key = await _sign_in(app, client)
    headers = {"X-API-Key": api_key}

    me = await client.get("/api/users/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "reader@example.com"

    links = [{"url": "https://a.example/article"}]
    first = (await _publish(client, links, headers, name="one")).json()
    await _publish(client, links, name="anonymous")
    second = (await _publish(client, links, headers, name="two")).json()

    response = await client.get("/api/users/me/rooms", headers=headers)

    assert response.status_code == 200
    assert [room["room_id"] for room in response.json()] == [
        second["room_id"],
        first["room_id"],
    ]


async def test_my_page_requires_sign_in(client):
    response = await client.get("/api/users/me/rooms")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_REQUIRED"


async def test_unknown_api_key_is_rejected(client):
    response = await _publish(
        client, [{"url": "https://a.example/article"}], {"X-API-Key": "olg_nope"}
    )

    assert response.status_code == 401


async def test_verify_with_bad_token(client):
    response = await client.post("/api/auth/verify", json={"token": "made-up"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


async def test_sign_out_revokes_key(app, client):
    api_key = await _sign_in(app, client, "leaving@example.com")
    headers = {"X-API-Key": api_key}

    response = await client.post("/api/auth/sign-out", headers=headers)
    assert response.status_code == 204

    response = await client.get("/api/users/me", headers=headers)
    assert response.status_code == 401


async def test_magic_link_rejects_bad_email(client):
    response = await client.post("/api/auth/magic-link", json={"email": "nope"})

    assert response.status_code == 422


async def test_submitted_urls_are_stored_as_typed(client):
    links = [
        {"url": "https://a.example"},
        {"url": "https://b.example", "note": "x"},
    ]
    room_id = (await _publish(client, links)).json()["room_id"]

    room = (await client.get(f"/api/rooms/{room_id}")).json()

    assert [(link["url"], link["note"]) for link in room["links"]] == [
        ("https://a.example", None),
        ("https://b.example", "x"),
    ]


@pytest.mark.parametrize(
    "url",
    [
        "http://127.0.0.1/admin",
        "http://169.254.169.254/latest/meta-data/",
        "http://[::1]:8080/",
        "http://localhost:5432/",
        "http://10.0.0.7/",
        "file:///etc/passwd",
    ],
)
async def test_ogp_fetch_refuses_non_public_targets(client, url):
    response = await client.post("/api/ogp_fetch", json={"url": url})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_TARGET"


async def test_ogp_fetch_checks_redirect_targets(settings_factory, pages):
    pages["https://r.example/hop"] = httpx.Response(
        302, headers={"location": "http://127.0.0.1/private"}
    )
    pages["https://r.example/ok"] = httpx.Response(
        301, headers={"location": "https://a.example/article"}
    )

    async with _client_for(settings_factory(), pages) as ac:
        refused = await ac.post("/api/ogp_fetch", json={"url": "https://r.example/hop"})
        followed = await ac.post("/api/ogp_fetch", json={"url": "https://r.example/ok"})

    assert refused.status_code == 400
    assert followed.status_code == 200
    assert followed.json()["title"] == "An Article"


async def test_ogp_fetch_caps_body_size(settings_factory):
    pages = {"https://big.example/": html_response(ARTICLE_HTML + "x" * 500)}

    async with _client_for(settings_factory(ogp_fetch_max_bytes=200), pages) as ac:
        response = await ac.post("/api/ogp_fetch", json={"url": "https://big.example/"})

    assert response.status_code == 502
    assert "larger than 200 bytes" in response.json()["error"]["message"]
