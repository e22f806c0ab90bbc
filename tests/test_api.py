"""
HTTP contract tests
"""
from sqlalchemy.exc import OperationalError

from phoneverify.models import PhoneVerification


PHONE = "+15551234567"


def _create_user(client, email="a@x.com", first_name="A"):
    response = client.post("/users", json={"email": email, "first_name": first_name})
    assert response.status_code == 201
    return response.json()


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["issuer"] == "local"
    assert "timestamp" in body


def test_request_id_echoed(client):
    response = client.get("/healthz", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_request_id_generated_when_absent(client):
    first = client.get("/healthz").headers["X-Request-ID"]
    second = client.get("/healthz").headers["X-Request-ID"]

    assert first and second
    assert first != second


def test_create_user(client):
    body = _create_user(client)

    assert body["email"] == "a@x.com"
    assert body["first_name"] == "A"
    assert body["phone_number"] is None
    assert body["phone_verified"] is False


def test_create_user_duplicate_is_409(client):
    _create_user(client)

    response = client.post("/users", json={"email": "a@x.com", "first_name": "B"})

    assert response.status_code == 409
    assert response.json()["detail"] == "User with this email already exists"


def test_create_user_invalid_email_is_422(client):
    response = client.post("/users", json={"email": "not-an-email", "first_name": "A"})

    assert response.status_code == 422


def test_get_user(client):
    created = _create_user(client)

    assert client.get(f"/users/{created['id']}").json()["email"] == "a@x.com"
    assert client.get("/users/9999").status_code == 404


def test_get_user_by_email(client):
    created = _create_user(client)

    response = client.get("/users/by-email", params={"email": "a@x.com"})

    assert response.status_code == 200
    assert response.json()["id"] == created["id"]
    assert client.get("/users/by-email", params={"email": "b@x.com"}).status_code == 404


def test_patch_user(client):
    created = _create_user(client)

    response = client.patch(f"/users/{created['id']}", json={"first_name": "Renamed"})

    assert response.status_code == 200
    assert response.json()["first_name"] == "Renamed"
    assert response.json()["email"] == "a@x.com"


def test_patch_user_clearing_phone_unverifies(client, make_user):
    user = make_user(phone_number=PHONE, phone_verified=True)

    response = client.patch(f"/users/{user.id}", json={"phone_number": None})

    assert response.status_code == 200
    assert response.json()["phone_number"] is None
    assert response.json()["phone_verified"] is False


def test_patch_verified_without_phone_is_422(client):
    user = _create_user(client)

    response = client.patch(f"/users/{user['id']}", json={"phone_verified": True})

    assert response.status_code == 422
    assert response.json()["detail"] == "A verified account must have a phone number"
    body = client.get(f"/users/{user['id']}").json()
    assert body["phone_verified"] is False
    assert body["phone_number"] is None


def test_patch_clear_phone_while_keeping_verified_is_422(client, make_user):
    user = make_user(phone_number=PHONE, phone_verified=True)

    response = client.patch(f"/users/{user.id}", json={"phone_number": None, "phone_verified": True})

    assert response.status_code == 422
    assert client.get(f"/users/{user.id}").json()["phone_number"] == PHONE


def test_get_user_by_email_matches_signup_spelling(client):
    created = _create_user(client, email="Bob@Example.COM", first_name="Bob")
    assert created["email"] == "Bob@example.com"

    for spelling in ("Bob@Example.COM", "Bob@example.com"):
        response = client.get("/users/by-email", params={"email": spelling})
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]


def test_get_user_by_email_invalid_address_is_404(client):
    assert client.get("/users/by-email", params={"email": "not-an-email"}).status_code == 404


def test_patch_user_errors(client):
    first = _create_user(client, email="a@x.com")
    _create_user(client, email="b@x.com")

    assert client.patch("/users/9999", json={"first_name": "X"}).status_code == 404
    assert client.patch(f"/users/{first['id']}", json={"email": "b@x.com"}).status_code == 409


def test_verification_flow(client, db):
    user = _create_user(client)

    started = client.post("/phone-verification/start", json={"user_id": user["id"], "phone_number": PHONE})
    assert started.status_code == 200
    assert started.json()["success"] is True
    verification_id = started.json()["verification_id"]

    code = db.get(PhoneVerification, verification_id).verification_code
    verified = client.post("/phone-verification/verify", json={"user_id": user["id"], "verification_code": code})

    assert verified.status_code == 200
    body = verified.json()
    assert body["success"] is True
    assert body["user"]["phone_verified"] is True
    assert body["user"]["phone_number"] == PHONE
    assert client.get(f"/users/{user['id']}").json()["phone_verified"] is True


def test_lifecycle_rejections_are_200(client):
    started = client.post("/phone-verification/start", json={"user_id": 9999, "phone_number": PHONE})
    resent = client.post("/phone-verification/resend", json={"user_id": 9999})

    assert started.status_code == 200
    assert started.json() == {
        "success": False,
        "message": "User not found",
        "verification_id": None,
        "error_code": "AccountNotFound",
    }
    assert resent.status_code == 200
    assert resent.json()["error_code"] == "AccountNotFound"


def test_resend_cooldown_over_http(client):
    user = _create_user(client)
    client.post("/phone-verification/start", json={"user_id": user["id"], "phone_number": PHONE})

    response = client.post("/phone-verification/resend", json={"user_id": user["id"]})

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error_code"] == "CooldownActive"


def test_verify_code_wrong_length_is_422(client):
    response = client.post("/phone-verification/verify", json={"user_id": 1, "verification_code": "123"})

    assert response.status_code == 422


def test_missing_fields_are_422(client):
    assert client.post("/phone-verification/start", json={"user_id": 1}).status_code == 422
    assert client.post("/phone-verification/resend", json={}).status_code == 422


def test_storage_failure_is_500(client, db, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", broken_query)

    response = client.post("/phone-verification/start", json={"user_id": 1, "phone_number": PHONE})

    assert response.status_code == 500
    assert response.json()["detail"].startswith("Internal server error")
