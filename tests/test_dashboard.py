from leverage_tracker.errors import StorageError
from leverage_tracker.extensions import STORE_KEY, db
from leverage_tracker.models import Leverage


def _register(client, name="alice"):
    return client.post(
        "/register",
        data={"name": name, "password": "secret", "age": "30", "bankroll": "1000"},
        follow_redirects=True,
    )


def _new_leverage(client, name="Daily", initial_value="200"):
    return client.post(
        "/leverage/new",
        data={"name": name, "initialValue": initial_value, "odd": "1.1", "maxBets": "3"},
        follow_redirects=True,
    )


def _only_active(client):
    (leverage,) = client.get("/api/leverages").get_json()
    return leverage


def test_anonymous_is_sent_to_login(client):
    res = client.get("/")
    assert res.status_code == 302
    assert "/login" in res.headers["Location"]


def test_register_logs_in_and_shows_dashboard(client):
    res = _register(client)
    assert res.status_code == 200
    assert b"Account created" in res.data
    assert b"1,000.00" in res.data
    assert b"No active leverages" in res.data


def test_register_errors_are_flashed(client):
    res = client.post("/register", data={"name": "alice", "password": "ab", "age": "30", "bankroll": "10"})
    assert res.status_code == 200
    assert b"Password must be at least 4 characters" in res.data


def test_login_and_logout(client):
    _register(client)
    client.post("/logout", follow_redirects=True)
    assert client.get("/").status_code == 302

    res = client.post("/login", data={"name": "alice", "password": "nope"})
    assert b"Incorrect password" in res.data

    res = client.post("/login", data={"name": "alice", "password": "secret"}, follow_redirects=True)
    assert b"Welcome back, alice!" in res.data


def test_login_ignores_external_next(client):
    _register(client)
    client.post("/logout")
    res = client.post("/login?next=https://evil.example/", data={"name": "alice", "password": "secret"})
    assert res.headers["Location"].endswith("/")
    assert "evil" not in res.headers["Location"]


def test_create_and_walk_a_leverage(client):
    _register(client)
    res = _new_leverage(client)
    assert b'Leverage &#34;Daily&#34; created!' in res.data or b"Leverage &quot;Daily&quot; created!" in res.data
    assert b"800.00" in res.data

    leverage_id = _only_active(client)["id"]
    res = client.post(f"/leverage/{leverage_id}/retreat", follow_redirects=True)
    assert b"Already on the first bet." in res.data

    client.post(f"/leverage/{leverage_id}/advance")
    client.post(f"/leverage/{leverage_id}/advance")
    assert _only_active(client)["current_day"] == 3

    res = client.post(f"/leverage/{leverage_id}/advance", follow_redirects=True)
    assert b"Already on the last bet." in res.data
    assert _only_active(client)["current_day"] == 3

    client.post(f"/leverage/{leverage_id}/reset")
    assert _only_active(client)["current_day"] == 1


def test_close_shows_realized_result(client):
    _register(client)
    _new_leverage(client)
    leverage_id = _only_active(client)["id"]
    client.post(f"/leverage/{leverage_id}/advance")
    client.post(f"/leverage/{leverage_id}/advance")

    res = client.post(f"/leverage/{leverage_id}/close", follow_redirects=True)
    assert b"Leverage closed at 242.00 (+42.00)." in res.data
    assert b"1,042.00" in res.data

    res = client.post(f"/leverage/{leverage_id}/close", follow_redirects=True)
    assert b"Leverage not found or already completed" in res.data


def test_over_stake_is_flashed(client):
    _register(client)
    res = _new_leverage(client, initial_value="5000")
    assert b"Insufficient bankroll: only 1000.00 available" in res.data
    assert client.get("/api/leverages").get_json() == []


def test_invalid_form_is_flashed(client):
    _register(client)
    res = client.post(
        "/leverage/new",
        data={"name": "Daily", "initialValue": "100", "odd": "0.9", "maxBets": "3"},
        follow_redirects=True,
    )
    assert b"Odd must be greater than 1" in res.data


def test_detail_page(client):
    _register(client)
    _new_leverage(client)
    leverage_id = _only_active(client)["id"]
    res = client.get(f"/leverage/{leverage_id}")
    assert res.status_code == 200
    assert b"Daily" in res.data
    assert b"220.00" in res.data

    res = client.get("/leverage/999", follow_redirects=True)
    assert b"Leverage not found or already completed" in res.data


def test_delete(client):
    _register(client)
    _new_leverage(client)
    leverage_id = _only_active(client)["id"]
    res = client.post(f"/leverage/{leverage_id}/delete", follow_redirects=True)
    assert b"Leverage deleted." in res.data
    assert client.get("/api/leverages").get_json() == []


def test_refresh_failure_keeps_session(app, client, monkeypatch):
    _register(client)
    store = app.extensions[STORE_KEY]

    def broken(*args, **kwargs):
        raise StorageError("Failed to list leverages")

    monkeypatch.setattr(store, "list", broken)
    res = client.get("/")
    assert res.status_code == 200
    assert b"Could not load your leverages" in res.data

    monkeypatch.undo()
    res = client.get("/")
    assert res.status_code == 200
    assert b"Could not load your leverages" not in res.data


def test_storage_failure_on_action_is_flashed(app, client, monkeypatch):
    _register(client)
    _new_leverage(client)
    leverage_id = _only_active(client)["id"]
    store = app.extensions[STORE_KEY]

    def broken(*args, **kwargs):
        raise StorageError("Failed to complete leverage")

    monkeypatch.setattr(store, "close", broken)
    res = client.post(f"/leverage/{leverage_id}/close")
    assert res.status_code == 302
    assert res.headers["Location"].endswith("/")

    res = client.get("/")
    assert res.status_code == 200
    assert b"Something went wrong on our side" in res.data
    assert _only_active(client)["id"] == leverage_id


def test_storage_failure_on_detail_is_flashed(app, client, monkeypatch):
    _register(client)
    _new_leverage(client)
    leverage_id = _only_active(client)["id"]
    store = app.extensions[STORE_KEY]

    def broken(*args, **kwargs):
        raise StorageError("Failed to list leverages")

    monkeypatch.setattr(store, "list", broken)
    res = client.get(f"/leverage/{leverage_id}")
    assert res.status_code == 302


def test_runaway_target_is_rejected_and_legacy_row_renders(app, client):
    _register(client)
    res = client.post(
        "/leverage/new",
        data={"name": "Huge", "initialValue": "10", "odd": "10", "maxBets": "400"},
        follow_redirects=True,
    )
    assert b"too large to track" in res.data
    assert client.get("/api/leverages").get_json() == []

    with app.app_context():
        db.session.add(Leverage(user_id=1, name="Legacy", initial_value=10.0, odd=10.0, max_bets=400))
        db.session.commit()
    res = client.get("/")
    assert res.status_code == 200
    assert b"Legacy" in res.data


def test_bad_bearer_token_on_dashboard_is_anonymous(client):
    res = client.get("/", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 302
    assert "/login" in res.headers["Location"]


def test_bad_bearer_token_ignored_for_logged_in_user(client):
    _register(client)
    res = client.get("/", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 200


def test_uncaught_app_error_on_page_is_not_json(app, client, monkeypatch):
    store = app.extensions[STORE_KEY]

    def broken(*args, **kwargs):
        raise StorageError("Failed to create user")

    monkeypatch.setattr(store, "create_user", broken)
    res = client.post("/register", data={"name": "alice", "password": "secret", "age": "30", "bankroll": "1000"})
    assert res.status_code == 500
    assert res.mimetype == "text/plain"
    assert res.data == b"Internal server error"
