from conftest import STRONG_PASSWORD, auth_headers


def _signup(client, *, email: str, password: str = STRONG_PASSWORD, role: str, name: str = "Test User"):
    return client.post(
        "/auth/signup",
        json={"email": email, "password": password, "role": role, "display_name": name},
    )


def _login(client, *, email: str, password: str = STRONG_PASSWORD, role: str | None = None):
    body = {"email": email, "password": password}
    if role is not None:
        body["role"] = role
    return client.post("/auth/login", json=body)


def test_signup_recruiter_success(client):
    r = _signup(client, email="recruiter@example.com", role="recruiter", name="Recruiter")
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["success"] is True
    assert data["user"]["role"] == "recruiter"
    assert data["user"]["email_verified"] is False
    assert isinstance(data.get("access_token"), str) and len(data["access_token"]) > 10


def test_signup_student_creates_empty_profile(client):
    r = _signup(client, email="Student@Example.com", role="student", name="Sam Student")
    assert r.status_code == 201, r.text
    assert r.json()["user"]["email"] == "student@example.com"

    me = client.get("/students/me", headers=auth_headers(r.json()["access_token"]))
    assert me.status_code == 200, me.text
    profile = me.json()["profile"]
    assert profile["first_name"] == "Sam"
    assert profile["last_name"] == "Student"
    assert profile["profile_completeness"] == 20
    assert profile["resume"] is None


def test_signup_as_admin_is_rejected(client):
    r = _signup(client, email="sneaky@example.com", role="admin")
    assert r.status_code == 400, r.text
    assert r.json()["success"] is False


def test_signup_duplicate_email_fails(client):
    assert _signup(client, email="dup@example.com", role="student").status_code == 201
    r = _signup(client, email="DUP@example.com", role="recruiter")
    assert r.status_code == 400, r.text
    assert "already exists" in r.json()["error"]


def test_signup_weak_password_lists_missing_classes(client):
    r = _signup(client, email="weak@example.com", password="alllowercase", role="student")
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Password must contain at least one uppercase letter, number"


def test_login_role_mismatch_fails(client):
    _signup(client, email="cand2@example.com", role="student")
    r = _login(client, email="cand2@example.com", role="recruiter")
    assert r.status_code == 403, r.text
    assert "Role mismatch" in r.json()["error"]


def test_login_without_role_succeeds(client):
    _signup(client, email="norole@example.com", role="student")
    r = _login(client, email="norole@example.com")
    assert r.status_code == 200, r.text
    assert r.json()["user"]["role"] == "student"


def test_login_invalid_credentials_fails(client):
    _signup(client, email="rec2@example.com", role="recruiter")
    r = _login(client, email="rec2@example.com", password="Wrongpass123", role="recruiter")
    assert r.status_code == 401, r.text
    assert r.json()["error"] == "Incorrect password."

    r = _login(client, email="nobody@example.com", role="recruiter")
    assert r.status_code == 401, r.text
    assert r.json()["error"] == "No account found with this email address."


def test_disabled_account_cannot_login_or_use_token(client, db_session):
    from backend.jobportal.models.user import User

    data = _signup(client, email="gone@example.com", role="student").json()
    user = db_session.query(User).filter(User.email == "gone@example.com").first()
    user.disabled = True
    db_session.commit()

    r = _login(client, email="gone@example.com")
    assert r.status_code == 403, r.text

    r = client.get("/auth/me", headers=auth_headers(data["access_token"]))
    assert r.status_code == 403, r.text


def test_logout_endpoint_exists(client):
    r = client.post("/auth/logout")
    assert r.status_code == 200, r.text
    assert "message" in r.json()


def test_me_requires_token(client):
    r = client.get("/auth/me")
    assert r.status_code == 401, r.text
    assert r.json() == {
        "success": False,
        "error": "Please login to access this feature.",
        "status_code": 401,
    }


def test_update_me_and_change_password(client):
    token = _signup(client, email="me@example.com", role="recruiter", name="Old Name").json()["access_token"]

    r = client.patch("/auth/me", json={"display_name": "  New Name "}, headers=auth_headers(token))
    assert r.status_code == 200, r.text
    assert r.json()["user"]["display_name"] == "New Name"

    r = client.post(
        "/auth/change-password",
        json={"current_password": "Nottheone123", "new_password": "Newpass4567"},
        headers=auth_headers(token),
    )
    assert r.status_code == 400, r.text

    r = client.post(
        "/auth/change-password",
        json={"current_password": STRONG_PASSWORD, "new_password": "Newpass4567"},
        headers=auth_headers(token),
    )
    assert r.status_code == 200, r.text
    assert _login(client, email="me@example.com", password="Newpass4567").status_code == 200


def test_password_reset_round_trip(client, monkeypatch):
    from backend.jobportal.services import emailer

    sent = {}

    def fake_send(*, to_email, display_name, token):
        sent["to"] = to_email
        sent["token"] = token

    monkeypatch.setattr(emailer, "send_password_reset_email", fake_send)

    _signup(client, email="forgot@example.com", role="student")
    r = client.post("/auth/password-reset", json={"email": "forgot@example.com"})
    assert r.status_code == 200, r.text
    assert sent["to"] == "forgot@example.com"

    r = client.post("/auth/password-reset/confirm", json={"token": sent["token"], "new_password": "Brandnew999"})
    assert r.status_code == 200, r.text
    assert _login(client, email="forgot@example.com", password="Brandnew999").status_code == 200

    # The link is bound to the old password hash and stops working once used.
    r = client.post("/auth/password-reset/confirm", json={"token": sent["token"], "new_password": "Another999x"})
    assert r.status_code == 400, r.text


def test_reset_link_carries_no_password_hash_characters(client, db_session, monkeypatch):
    from jose import jwt

    from backend.jobportal.models.user import User
    from backend.jobportal.services import emailer
    from backend.jobportal.utils.jwt import state_fingerprint

    sent = {}
    monkeypatch.setattr(emailer, "send_password_reset_email", lambda **kw: sent.update(kw))

    _signup(client, email="leak@example.com", role="student")
    assert client.post("/auth/password-reset", json={"email": "leak@example.com"}).status_code == 200

    stored_hash = db_session.query(User).filter(User.email == "leak@example.com").first().password
    fp = jwt.get_unverified_claims(sent["token"])["fp"]
    assert fp == state_fingerprint(stored_hash)
    assert fp not in stored_hash
    assert stored_hash[-16:] not in sent["token"]


def test_password_reset_unknown_email(client):
    r = client.post("/auth/password-reset", json={"email": "ghost@example.com"})
    assert r.status_code == 404, r.text


def test_password_reset_mail_failure_is_reported(client, monkeypatch):
    from backend.jobportal.services import emailer

    def broken(**kwargs):
        raise RuntimeError("SMTP is not configured")

    monkeypatch.setattr(emailer, "send_password_reset_email", broken)
    _signup(client, email="nomail@example.com", role="student")
    r = client.post("/auth/password-reset", json={"email": "nomail@example.com"})
    assert r.status_code == 503, r.text


def test_session_token_is_not_a_reset_token(client):
    token = _signup(client, email="swap@example.com", role="student").json()["access_token"]
    r = client.post("/auth/password-reset/confirm", json={"token": token, "new_password": "Brandnew999"})
    assert r.status_code == 400, r.text


def test_verify_email(client, monkeypatch):
    from backend.jobportal.services import emailer

    sent = {}
    monkeypatch.setattr(emailer, "send_verification_email", lambda **kw: sent.update(kw))

    token = _signup(client, email="verify@example.com", role="student").json()["access_token"]
    assert "token" in sent

    r = client.post("/auth/verify-email", json={"token": sent["token"]})
    assert r.status_code == 200, r.text
    me = client.get("/auth/me", headers=auth_headers(token)).json()
    assert me["user"]["email_verified"] is True

    r = client.post("/auth/verify-email", json={"token": "garbage"})
    assert r.status_code == 400, r.text


def test_signup_survives_mail_failure(client, monkeypatch):
    from backend.jobportal.services import emailer

    def broken(**kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(emailer, "send_verification_email", broken)
    assert _signup(client, email="stillok@example.com", role="recruiter").status_code == 201


def test_password_strength_endpoint(client):
    r = client.post("/auth/password-strength", json={"password": "Testpass123!"})
    assert r.status_code == 200, r.text
    assert r.json()["score"] == 5
    assert r.json()["label"] == "Very Strong"

    r = client.post("/auth/password-strength", json={"password": ""})
    assert r.json()["score"] == 0


def test_student_cannot_create_job(client, make_user):
    _, headers = make_user("cand3@example.com", "student")
    r = client.post(
        "/jobs",
        json={"company_id": 1, "title": "PM", "description": "A" * 20, "status": "active"},
        headers=headers,
    )
    assert r.status_code == 403, r.text
    assert r.json()["error"] == "Recruiter access only"
