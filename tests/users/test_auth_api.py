from dental_clinic.core.enums import UserStatus


def test_login_sets_session(client):
    resp = client.post("/api/auth/login", json={"email": "owner@clinic.kr", "password": "owner123"})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["role"] == "owner"
    with client.session_transaction() as sess:
        assert sess["user_id"] == 1
        assert sess["clinic_id"] == 1


def test_login_with_wrong_password(client):
    resp = client.post("/api/auth/login", json={"email": "owner@clinic.kr", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_me_requires_login(client):
    assert client.get("/api/me").status_code == 401


def test_me_returns_profile(as_staff):
    resp = as_staff.get("/api/me")

    assert resp.status_code == 200
    assert resp.get_json()["data"]["email"] == "staff@clinic.kr"
    assert resp.get_json()["data"]["hire_date"] == "2024-01-01"


def test_signup_creates_pending_account(client, users_repo):
    resp = client.post(
        "/api/auth/signup",
        json={"clinic_id": 1, "name": "박신입", "email": "new@clinic.kr", "password": "secret1", "hire_date": "2024-03-01"},
    )

    assert resp.status_code == 201
    user_id = resp.get_json()["data"]["user_id"]
    assert users_repo.users[user_id].status == UserStatus.PENDING


def test_signup_requires_clinic(client):
    resp = client.post("/api/auth/signup", json={"name": "박신입", "email": "new@clinic.kr", "password": "secret1"})

    assert resp.status_code == 400


def test_logout_clears_session(as_owner):
    as_owner.post("/api/auth/logout")

    assert as_owner.get("/api/me").status_code == 401


def test_staff_list_is_manager_only(as_staff):
    assert as_staff.get("/api/staff").status_code == 403


def test_owner_approves_signup(as_owner, users_repo):
    user_id = as_owner.post(
        "/api/auth/signup",
        json={"clinic_id": 1, "name": "박신입", "email": "new@clinic.kr", "password": "secret1"},
    ).get_json()["data"]["user_id"]

    pending = as_owner.get("/api/staff?status=pending").get_json()["data"]
    assert [u["user_id"] for u in pending] == [user_id]

    resp = as_owner.post(f"/api/staff/{user_id}/approve")
    assert resp.status_code == 200
    assert users_repo.users[user_id].status == UserStatus.ACTIVE


def test_unknown_staff_action(as_owner):
    assert as_owner.post("/api/staff/2/promote").status_code == 404
