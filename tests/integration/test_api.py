"""HTTP tests for auth, videos, transfers and media delivery through the FastAPI app."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from starlette.requests import Request

from boom.database import Base, begin_write, build_engine, get_db
from boom.main import app
from boom.models import MAX_AMOUNT, Video
from boom.routers import media
from boom.services import transfer_engine
from boom.services.media_storage import get_media_storage

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + bytes(range(256)) * 4


def _serve(session_factory, storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_storage] = lambda: storage


@pytest.fixture
def client(session_factory, storage):
    _serve(session_factory, storage)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def busy_factory(tmp_path):
    """Sessions on a database that reports busy after 0.2s of waiting for a lock."""
    engine = build_engine(f"sqlite:///{tmp_path / 'busy.db'}", busy_timeout=0.2)
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _register(client, username: str) -> dict:
    res = client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": "secret123"},
    )
    assert res.status_code == 201, res.text
    body = res.json()
    return {"id": body["user"]["id"], "headers": {"Authorization": f"Bearer {body['access_token']}"}}


def _balance(client, user) -> int:
    return client.get("/api/auth/me", headers=user["headers"]).json()["balance"]


def _create_linked_video(client, user, price: int) -> str:
    res = client.post(
        "/api/videos",
        data={
            "title": "Long form",
            "description": "a long one",
            "video_type": "long",
            "price": str(price),
            "video_url": "https://cdn.example.com/long.mp4",
        },
        headers=user["headers"],
    )
    assert res.status_code == 201, res.text
    return res.json()["video"]["id"]


def _upload_video(client, user, video_type: str, price: int = 0) -> dict:
    res = client.post(
        "/api/videos",
        data={"title": f"{video_type} upload", "video_type": video_type, "price": str(price)},
        files={"video_file": ("clip.mp4", VIDEO_BYTES, "video/mp4")},
        headers=user["headers"],
    )
    assert res.status_code == 201, res.text
    return res.json()["video"]


class TestAuth:
    def test_register_grants_starting_balance(self, client):
        alice = _register(client, "alice")
        assert _balance(client, alice) == 500

    def test_duplicate_registration_rejected(self, client):
        _register(client, "alice")
        res = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "other@example.com", "password": "secret123"},
        )
        assert res.status_code == 400

    def test_login(self, client):
        _register(client, "alice")
        res = client.post("/api/auth/login", json={"email": "ALICE@example.com", "password": "secret123"})
        assert res.status_code == 200
        assert res.json()["user"]["username"] == "alice"

        bad = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
        assert bad.status_code == 401

    def test_endpoints_require_token(self, client):
        assert client.get("/api/videos").status_code == 401
        assert client.post("/api/videos/x/purchase").status_code == 401
        assert client.get("/api/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


class TestPurchaseAndGift:
    def test_wallet_flow(self, client):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        video_id = _create_linked_video(client, bob, price=200)

        locked = client.get(f"/api/videos/{video_id}", headers=alice["headers"]).json()
        assert locked["purchased"] is False
        assert locked["video_url"] is None
        assert locked["view_count"] == 1

        res = client.post(f"/api/videos/{video_id}/purchase", headers=alice["headers"])
        assert res.status_code == 200
        assert res.json()["new_balance"] == 300
        assert res.json()["video_url"] == "https://cdn.example.com/long.mp4"

        again = client.post(f"/api/videos/{video_id}/purchase", headers=alice["headers"])
        assert again.status_code == 409
        assert again.json()["detail"] == "You already own this video"

        unlocked = client.get(f"/api/videos/{video_id}", headers=alice["headers"]).json()
        assert unlocked["purchased"] is True
        assert unlocked["video_url"] == "https://cdn.example.com/long.mp4"

        gift = client.post(f"/api/videos/{video_id}/gift", json={"amount": 100}, headers=alice["headers"])
        assert gift.status_code == 200
        assert gift.json()["new_balance"] == 200
        assert _balance(client, bob) == 600

        self_gift = client.post(f"/api/videos/{video_id}/gift", json={"amount": 50}, headers=bob["headers"])
        assert self_gift.status_code == 400
        assert self_gift.json()["detail"] == "You cannot gift yourself"

        pricey = _create_linked_video(client, bob, price=1000)
        broke = client.post(f"/api/videos/{pricey}/purchase", headers=alice["headers"])
        assert broke.status_code == 400
        assert broke.json()["detail"] == "Insufficient balance"
        assert _balance(client, alice) == 200

    def test_invalid_gift_amount(self, client):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        video_id = _create_linked_video(client, bob, price=0)
        res = client.post(f"/api/videos/{video_id}/gift", json={"amount": 0}, headers=alice["headers"])
        assert res.status_code == 422
        assert _balance(client, alice) == 500

    def test_gift_amount_above_column_range(self, client):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        video_id = _create_linked_video(client, bob, price=0)
        res = client.post(f"/api/videos/{video_id}/gift", json={"amount": 10**20}, headers=alice["headers"])
        assert res.status_code == 422
        assert _balance(client, alice) == 500

    def test_unknown_video(self, client):
        alice = _register(client, "alice")
        assert client.post("/api/videos/nope/purchase", headers=alice["headers"]).status_code == 404
        assert client.post("/api/videos/nope/gift", json={"amount": 5}, headers=alice["headers"]).status_code == 404
        assert client.get("/api/videos/nope", headers=alice["headers"]).status_code == 404

    def test_free_video_cannot_be_bought(self, client):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        video = _upload_video(client, bob, "short", price=300)
        assert video["price"] == 0
        res = client.post(f"/api/videos/{video['id']}/purchase", headers=alice["headers"])
        assert res.status_code == 400

    def test_history_lists(self, client):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        video_id = _create_linked_video(client, bob, price=120)
        client.post(f"/api/videos/{video_id}/purchase", headers=alice["headers"])
        client.post(f"/api/videos/{video_id}/gift", json={"amount": 30}, headers=alice["headers"])

        purchases = client.get("/api/users/purchases", headers=alice["headers"]).json()
        assert [(p["video"]["id"], p["amount"]) for p in purchases] == [(video_id, 120)]

        received = client.get("/api/users/gifts", headers=bob["headers"]).json()
        assert len(received) == 1
        assert received[0]["sender"]["username"] == "alice"
        assert received[0]["amount"] == 30

        sent = client.get("/api/users/gifts/sent", headers=alice["headers"]).json()
        assert sent[0]["receiver_id"] == bob["id"]

        mine = client.get("/api/users/videos", headers=bob["headers"]).json()
        assert [v["id"] for v in mine] == [video_id]


class TestVideos:
    def test_create_requires_media(self, client):
        bob = _register(client, "bob")
        res = client.post("/api/videos", data={"title": "empty", "video_type": "short"}, headers=bob["headers"])
        assert res.status_code == 400

    def test_create_rejects_bad_type(self, client):
        bob = _register(client, "bob")
        res = client.post(
            "/api/videos",
            data={"title": "x", "video_type": "medium", "video_url": "https://cdn.example.com/x.mp4"},
            headers=bob["headers"],
        )
        assert res.status_code == 400

    def test_price_must_fit_the_price_column(self, client):
        bob = _register(client, "bob")
        for price in (10**20, MAX_AMOUNT + 1):
            res = client.post(
                "/api/videos",
                data={"title": "x", "video_type": "long", "price": str(price), "video_url": "https://cdn.example.com/x.mp4"},
                headers=bob["headers"],
            )
            assert res.status_code == 400
        assert _create_linked_video(client, bob, price=MAX_AMOUNT)

    def test_list_marks_paid_videos(self, client):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        _upload_video(client, bob, "short")
        paid_id = _create_linked_video(client, bob, price=50)

        listing = client.get("/api/videos", params={"page": 1, "limit": 10}, headers=alice["headers"]).json()
        by_id = {v["id"]: v for v in listing["videos"]}
        assert len(by_id) == 2
        assert by_id[paid_id]["purchased"] is False
        assert by_id[paid_id]["video_url"] is None
        free = [v for v in listing["videos"] if v["id"] != paid_id][0]
        assert free["purchased"] is True
        assert free["video_url"].startswith("/api/media/public/")


class TestMedia:
    def test_short_upload_is_publicly_playable(self, client):
        bob = _register(client, "bob")
        video = _upload_video(client, bob, "short")
        res = client.get(video["video_url"])
        assert res.status_code == 200
        assert res.content == VIDEO_BYTES

    def test_paid_upload_needs_signed_link(self, client, storage):
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        video = _upload_video(client, bob, "long", price=100)
        signed_for_owner = video["video_url"]
        assert signed_for_owner.startswith("/api/media/signed/")

        key = storage.verify_signed_token(signed_for_owner.rsplit("/", 1)[1])
        public_path = storage.public_url(key)
        assert client.get(public_path).status_code == 404

        bought = client.post(f"/api/videos/{video['id']}/purchase", headers=alice["headers"]).json()
        res = client.get(bought["video_url"])
        assert res.status_code == 200
        assert res.content == VIDEO_BYTES

    def test_signed_link_supports_range(self, client):
        bob = _register(client, "bob")
        video = _upload_video(client, bob, "long", price=100)
        res = client.get(video["video_url"], headers={"Range": "bytes=0-9"})
        assert res.status_code == 206
        assert res.headers["content-range"] == f"bytes 0-9/{len(VIDEO_BYTES)}"
        assert res.content == VIDEO_BYTES[:10]

    def test_tampered_link_rejected(self, client):
        assert client.get("/api/media/signed/abc.def.ghi").status_code == 403


def test_open_media_stream_does_not_block_transfers(session_factory, storage, make_user, make_video, balance_of):
    alice = make_user("alice")
    bob = make_user("bob", balance=0)
    short = make_video(bob, video_type="short")
    paid = make_video(bob, price=100)
    with session_factory() as s:
        key = s.get(Video, short).storage_path

    # the response has been handed back but its body is not sent yet, so the
    # request's session is still waiting for teardown
    viewer_db = session_factory()
    try:
        response = media.get_public_media(
            key, Request({"type": "http", "method": "GET", "path": "/", "headers": []}), viewer_db, storage
        )
        assert response.status_code == 200

        with session_factory() as s:
            transfer_engine.gift(s, alice, short, 10)
        with session_factory() as s:
            transfer_engine.purchase(s, alice, paid, storage)
    finally:
        viewer_db.close()

    assert balance_of(alice) == 390
    assert balance_of(bob) == 10


def test_locked_database_reports_unavailable(busy_factory, storage):
    _serve(busy_factory, storage)
    holder = busy_factory()
    try:
        with TestClient(app) as client:
            alice = _register(client, "alice")
            bob = _register(client, "bob")
            video_id = _create_linked_video(client, bob, price=100)

            begin_write(holder)
            register = client.post(
                "/api/auth/register",
                json={"username": "carol", "email": "carol@example.com", "password": "secret123"},
            )
            assert register.status_code == 503
            assert "outcome is unknown" in register.json()["detail"]
            assert client.post(f"/api/videos/{video_id}/purchase", headers=alice["headers"]).status_code == 503
            holder.rollback()

            assert _balance(client, alice) == 500
            assert client.post(f"/api/videos/{video_id}/purchase", headers=alice["headers"]).status_code == 200
            assert _register(client, "carol")
    finally:
        holder.close()
        app.dependency_overrides.clear()
