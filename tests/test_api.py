import pytest
from fastapi import BackgroundTasks

from app.api.v1.chat import router as chat_router
from app.api.v1.profile import router as profile_router
from app.core.errors import ImageUploadError
from app.schemas.chat import SendMessageRequest
from app.services import chat_service
from app.services.chat_service import ChatService, run_auto_reply

from conftest import bearer, signup


async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}


# ==================== AUTH ====================

async def test_signup_returns_token_user_and_profile(client):
    data = await signup(client, full_name="Cool Shop")

    assert data["tokenType"] == "bearer"
    assert data["user"]["phone"] == "+966500000001"
    assert data["profile"]["slug"] == "cool-shop"
    assert data["profile"]["products"] == []
    assert data["profile"]["aiEnabled"] is False


async def test_signup_duplicate_phone(client, owner):
    response = await client.post(
        "/api/v1/auth/signup",
        json={"phone": "500000001", "password": "another1", "fullName": "Other"},
    )
    assert response.status_code == 409


async def test_signup_short_password(client):
    response = await client.post(
        "/api/v1/auth/signup",
        json={"phone": "500000001", "password": "123", "fullName": "Shop"},
    )
    assert response.status_code == 422


async def test_login(client, owner):
    response = await client.post(
        "/api/v1/auth/login", json={"phone": "500000001", "password": "secret123"}
    )
    assert response.status_code == 200
    assert response.json()["profile"]["id"] == owner["profile"]["id"]


async def test_login_wrong_password(client, owner):
    response = await client.post(
        "/api/v1/auth/login", json={"phone": "500000001", "password": "secret12"}
    )
    assert response.status_code == 401


async def test_me(client, owner):
    response = await client.get("/api/v1/auth/me", headers=bearer(owner))
    assert response.status_code == 200
    assert response.json()["user"]["businessId"] == owner["profile"]["id"]


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer not-a-token"}])
async def test_me_requires_token(client, headers):
    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401


# ==================== PROFILE ====================

async def test_save_and_get_profile(client, owner):
    payload = {
        **owner["profile"],
        "slug": "Best Shop",
        "description": "Handmade soap",
        "socialLinks": {"instagram": "@soap"},
        "products": [{"id": "p1", "name": "A", "price": 10}],
        "faqs": [{"id": 1, "question": "Delivery?", "answer": "Yes"}],
        "aiEnabled": True,
    }

    response = await client.put("/api/v1/profile", json=payload, headers=bearer(owner))
    assert response.status_code == 200, response.text
    saved = response.json()
    assert saved["slug"] == "bestshop"
    assert saved["faqs"][0]["id"] == "1"

    response = await client.get("/api/v1/profile", headers=bearer(owner))
    profile = response.json()
    assert profile["products"] == [{"id": "p1", "name": "A", "price": 10.0, "description": "", "image": ""}]
    assert profile["socialLinks"] == {"instagram": "@soap"}
    assert profile["aiEnabled"] is True


async def test_save_profile_slug_taken(client, owner):
    other = await signup(client, phone="500000002", full_name="Other Shop")

    response = await client.put(
        "/api/v1/profile",
        json={**other["profile"], "slug": owner["profile"]["slug"]},
        headers=bearer(other),
    )
    assert response.status_code == 409


async def test_add_and_remove_product(client, owner):
    response = await client.post("/api/v1/profile/products", headers=bearer(owner))
    assert response.status_code == 200
    products = response.json()["products"]
    assert len(products) == 1

    response = await client.post(
        "/api/v1/profile/products",
        json={"id": "p2", "name": "Soap", "price": 5},
        headers=bearer(owner),
    )
    assert [p["id"] for p in response.json()["products"]] == [products[0]["id"], "p2"]

    response = await client.delete(f"/api/v1/profile/products/{products[0]['id']}", headers=bearer(owner))
    assert [p["id"] for p in response.json()["products"]] == ["p2"]


async def test_upload_image(client, owner, monkeypatch):
    async def fake_upload(content, filename, content_type):
        assert content == b"png-bytes"
        return f"https://img.example/{filename}"

    monkeypatch.setattr(profile_router, "upload_image", fake_upload)

    response = await client.post(
        "/api/v1/profile/images",
        files={"file": ("logo.png", b"png-bytes", "image/png")},
        headers=bearer(owner),
    )
    assert response.status_code == 200
    assert response.json() == {"url": "https://img.example/logo.png"}


async def test_upload_image_host_failure(client, owner, monkeypatch):
    async def failing_upload(content, filename, content_type):
        raise ImageUploadError("host down")

    monkeypatch.setattr(profile_router, "upload_image", failing_upload)

    response = await client.post(
        "/api/v1/profile/images",
        files={"file": ("logo.png", b"png-bytes", "image/png")},
        headers=bearer(owner),
    )
    assert response.status_code == 502


async def test_upload_empty_image(client, owner):
    response = await client.post(
        "/api/v1/profile/images",
        files={"file": ("logo.png", b"", "image/png")},
        headers=bearer(owner),
    )
    assert response.status_code == 400


# ==================== PUBLIC + CHAT ====================

async def test_public_profile_by_slug_and_id(client, owner):
    profile = owner["profile"]

    by_slug = await client.get(f"/api/v1/public/profiles/{profile['slug']}")
    by_id = await client.get(f"/api/v1/public/profiles/{profile['id']}")

    assert by_slug.json()["id"] == by_id.json()["id"] == profile["id"]
    assert "aiBusinessInfo" not in by_slug.json()


async def test_public_profile_not_available(client):
    response = await client.get("/api/v1/public/profiles/nope")
    assert response.status_code == 404
    assert response.json()["detail"] == "This store is not available"


async def test_chat_and_inbox_flow(client, owner):
    slug = owner["profile"]["slug"]
    base = f"/api/v1/chat/{slug}/sessions/sess_1/messages"

    greeting = (await client.get(base)).json()["messages"]
    assert [m["id"] for m in greeting] == ["welcome"]

    response = await client.post(
        f"/api/v1/chat/{slug}/sessions",
        json={"sessionId": "sess_1", "customerName": "Sara", "customerPhone": "0500000000"},
    )
    assert response.status_code == 200

    for text in ("hello", "price?"):
        response = await client.post(base, json={"text": text})
        assert response.status_code == 201
        assert response.json()["sender"] == "customer"

    sessions = (await client.get("/api/v1/inbox/sessions", headers=bearer(owner))).json()["sessions"]
    assert len(sessions) == 1
    assert sessions[0]["customerName"] == "Sara"
    assert sessions[0]["lastText"] == "price?"
    assert sessions[0]["unreadCount"] == 2

    response = await client.get("/api/v1/inbox/sessions/sess_1/messages", headers=bearer(owner))
    assert [m["text"] for m in response.json()["messages"]] == ["hello", "price?"]

    sessions = (await client.get("/api/v1/inbox/sessions", headers=bearer(owner))).json()["sessions"]
    assert sessions[0]["unreadCount"] == 0

    response = await client.post(
        "/api/v1/inbox/sessions/sess_1/messages", json={"text": "10 SAR"}, headers=bearer(owner)
    )
    assert response.status_code == 201

    thread = (await client.get(base)).json()["messages"]
    assert [(m["sender"], m["text"]) for m in thread] == [
        ("customer", "hello"),
        ("customer", "price?"),
        ("owner", "10 SAR"),
    ]


async def test_mark_read_endpoint(client, owner):
    slug = owner["profile"]["slug"]
    await client.post(f"/api/v1/chat/{slug}/sessions/sess_1/messages", json={"text": "hi"})

    response = await client.post("/api/v1/inbox/sessions/sess_1/read", headers=bearer(owner))
    assert response.json() == {"marked": 1}

    response = await client.post("/api/v1/inbox/sessions/sess_1/read", headers=bearer(owner))
    assert response.json() == {"marked": 0}


async def test_send_empty_message(client, owner):
    response = await client.post(
        f"/api/v1/chat/{owner['profile']['slug']}/sessions/sess_1/messages", json={"text": ""}
    )
    assert response.status_code == 422


async def test_chat_unknown_store(client):
    response = await client.post("/api/v1/chat/nope/sessions/sess_1/messages", json={"text": "hi"})
    assert response.status_code == 404


async def test_inbox_hides_other_profiles_sessions(client, owner):
    other = await signup(client, phone="500000002", full_name="Other Shop")
    await client.post(f"/api/v1/chat/{owner['profile']['slug']}/sessions/sess_1/messages", json={"text": "hi"})

    sessions = (await client.get("/api/v1/inbox/sessions", headers=bearer(other))).json()["sessions"]
    assert sessions == []

    response = await client.get("/api/v1/inbox/sessions/sess_1/messages", headers=bearer(other))
    assert response.status_code == 404

    response = await client.post(
        "/api/v1/inbox/sessions/sess_1/messages", json={"text": "x"}, headers=bearer(other)
    )
    assert response.status_code == 404


async def _enable_ai(client, owner):
    response = await client.put(
        "/api/v1/profile", json={**owner["profile"], "aiEnabled": True}, headers=bearer(owner)
    )
    assert response.status_code == 200


async def test_send_schedules_auto_reply_after_response(client, owner, db, session_factory):
    await _enable_ai(client, owner)
    tasks = BackgroundTasks()

    message = await chat_router.send_message(
        owner["profile"]["slug"], "sess_1", SendMessageRequest(text="hi"), tasks, db, session_factory
    )

    assert message.text == "hi"
    assert [t.func for t in tasks.tasks] == [run_auto_reply]
    assert [m.text for m in await ChatService(db).list_messages("sess_1")] == ["hi"]


async def test_auto_reply_shows_up_on_next_poll(client, owner, monkeypatch):
    await _enable_ai(client, owner)

    async def responder(profile, history):
        return "ai answer"

    monkeypatch.setattr(chat_service, "generate_auto_reply", responder)
    base = f"/api/v1/chat/{owner['profile']['slug']}/sessions/sess_1/messages"

    response = await client.post(base, json={"text": "hi"})
    assert response.status_code == 201
    assert response.json()["text"] == "hi"

    thread = (await client.get(base)).json()["messages"]
    assert [(m["text"], m["isAi"]) for m in thread] == [("hi", False), ("ai answer", True)]


async def test_send_unexpected_error(client, owner, monkeypatch):
    async def broken_send(self, profile, session_id, text):
        raise RuntimeError("disk full")

    monkeypatch.setattr(ChatService, "send", broken_send)

    response = await client.post(
        f"/api/v1/chat/{owner['profile']['slug']}/sessions/sess_1/messages", json={"text": "hi"}
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Error processing message: disk full"
