from fastapi import status

from ticket_ai.config import Role


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def signup(client, email, password="secret123", skills=None):
    r = client.post("/api/auth/signup", json={"email": email, "password": password, "skills": skills or []})
    assert r.status_code == status.HTTP_201_CREATED
    return r.json()


def promote(client, admin_token, email, role, skills=None):
    payload = {"email": email, "role": role}
    if skills is not None:
        payload["skills"] = skills
    r = client.post("/api/auth/update-user", json=payload, headers=auth_header(admin_token))
    assert r.status_code == status.HTTP_200_OK
    return r.json()


def signup_id(user_repo, email):
    return next(u.id for u in user_repo.users.values() if u.email == email)


def make_admin(client, user_repo):
    body = signup(client, "admin@example.com")
    user_repo.users[body["user"]["id"]].role = Role.ADMIN
    return body["token"]


# ========== Health ==========

def test_health(app_client):
    r = app_client.get("/health")

    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert "X-Correlation-ID" in r.headers


def test_root(app_client):
    r = app_client.get("/")

    assert r.status_code == 200
    assert r.json()["docs"] == "/docs"


# ========== Auth ==========

def test_signup_returns_user_and_token(app_client, mailer):
    body = signup(app_client, "Jane@Example.com", skills=["vpn"])

    assert body["user"]["email"] == "jane@example.com"
    assert body["user"]["role"] == "user"
    assert body["user"]["skills"] == ["vpn"]
    assert "password" not in str(body["user"])
    assert body["token"]
    assert [m.subject for m in mailer.sent] == ["Welcome to Ticket AI System"]


def test_duplicate_signup_conflicts(app_client):
    signup(app_client, "jane@example.com")

    r = app_client.post("/api/auth/signup", json={"email": "jane@example.com", "password": "secret123"})

    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json()["detail"] == "User with this email already exists"


def test_signup_validation(app_client):
    r = app_client.post("/api/auth/signup", json={"email": "not-an-email", "password": "secret123"})
    assert r.status_code == 422

    r = app_client.post("/api/auth/signup", json={"email": "jane@example.com", "password": "123"})
    assert r.status_code == 422


def test_signup_rejects_password_over_72_bytes(app_client):
    # 30 characters but 90 bytes in UTF-8
    r = app_client.post("/api/auth/signup", json={"email": "jane@example.com", "password": "密" * 30})

    assert r.status_code == 422


def test_multibyte_password_within_limit(app_client):
    password = "密" * 24
    r = app_client.post("/api/auth/signup", json={"email": "jane@example.com", "password": password})
    assert r.status_code == status.HTTP_201_CREATED

    r = app_client.post("/api/auth/login", json={"email": "jane@example.com", "password": password})
    assert r.status_code == 200

    r = app_client.post("/api/auth/login", json={"email": "jane@example.com", "password": "密" * 30})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_login(app_client):
    created = signup(app_client, "jane@example.com")

    r = app_client.post("/api/auth/login", json={"email": "jane@example.com", "password": "secret123"})

    assert r.status_code == 200
    assert r.json()["user"]["id"] == created["user"]["id"]


def test_login_wrong_password(app_client):
    signup(app_client, "jane@example.com")

    r = app_client.post("/api/auth/login", json={"email": "jane@example.com", "password": "nope-nope"})

    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_login_unknown_account(app_client):
    r = app_client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_logout(app_client):
    token = signup(app_client, "jane@example.com")["token"]

    r = app_client.post("/api/auth/logout", headers=auth_header(token))

    assert r.status_code == 200
    assert r.json()["message"] == "Logged out successfully"


def test_logout_with_invalid_token(app_client):
    r = app_client.post("/api/auth/logout", headers=auth_header("garbage"))

    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_users_list_is_admin_only(app_client, user_repo):
    user_token = signup(app_client, "jane@example.com")["token"]
    admin_token = make_admin(app_client, user_repo)

    assert app_client.get("/api/auth/users", headers=auth_header(user_token)).status_code == 403

    r = app_client.get("/api/auth/users", headers=auth_header(admin_token))
    assert r.status_code == 200
    assert {u["email"] for u in r.json()} == {"jane@example.com", "admin@example.com"}


def test_update_user_persists(app_client, user_repo):
    signup(app_client, "mod@example.com")
    admin_token = make_admin(app_client, user_repo)

    body = promote(app_client, admin_token, "mod@example.com", "moderator", skills="networking, vpn")

    assert body["user"]["role"] == "moderator"
    assert body["user"]["skills"] == ["networking", "vpn"]

    listed = app_client.get("/api/auth/users", headers=auth_header(admin_token)).json()
    assert next(u for u in listed if u["email"] == "mod@example.com")["role"] == "moderator"


def test_update_user_rejects_unknown_role(app_client, user_repo):
    signup(app_client, "jane@example.com")
    admin_token = make_admin(app_client, user_repo)

    r = app_client.post(
        "/api/auth/update-user",
        json={"email": "jane@example.com", "role": "root"},
        headers=auth_header(admin_token)
    )

    assert r.status_code == 422


# ========== Tickets ==========

def test_ticket_routes_require_token(app_client):
    r = app_client.get("/api/tickets")

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json()["detail"] == "No token provided"


def test_create_ticket_returns_todo_and_pipeline_enriches_it(app_client, user_repo, mailer):
    user_token = signup(app_client, "jane@example.com")["token"]
    admin_token = make_admin(app_client, user_repo)
    signup(app_client, "net@example.com")
    promote(app_client, admin_token, "net@example.com", "moderator", skills=["Networking"])

    r = app_client.post(
        "/api/tickets",
        json={"title": "VPN fails", "description": "Cannot connect to corporate VPN"},
        headers=auth_header(user_token)
    )

    assert r.status_code == status.HTTP_201_CREATED
    body = r.json()
    assert body["message"] == "ticket created and processing started"
    assert body["ticket"]["status"] == "TODO"
    ticket_id = body["ticket"]["id"]

    detail = app_client.get(f"/api/tickets/{ticket_id}", headers=auth_header(admin_token)).json()
    assert detail["status"] == "IN_PROGRESS"
    assert detail["priority"] == "high"
    assert detail["related_skills"] == ["networking", "vpn"]
    assert detail["assigned_to"]["email"] == "net@example.com"
    assert detail["created_by"] == signup_id(user_repo, "jane@example.com")
    assert mailer.sent[-1].to == "net@example.com"


def test_create_ticket_validation(app_client):
    token = signup(app_client, "jane@example.com")["token"]

    r = app_client.post("/api/tickets", json={"title": "   ", "description": "x"}, headers=auth_header(token))

    assert r.status_code == 422


def test_user_sees_only_own_tickets(app_client):
    jane = signup(app_client, "jane@example.com")["token"]
    bob = signup(app_client, "bob@example.com")["token"]

    mine = app_client.post("/api/tickets", json={"title": "Mine", "description": "d"}, headers=auth_header(jane)).json()
    app_client.post("/api/tickets", json={"title": "Bob's", "description": "d"}, headers=auth_header(bob))

    listed = app_client.get("/api/tickets", headers=auth_header(jane)).json()
    assert [t["title"] for t in listed] == ["Mine"]
    assert set(listed[0]) == {"id", "title", "description", "status", "created_at"}

    r = app_client.get(f"/api/tickets/{mine['ticket']['id']}", headers=auth_header(bob))
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_staff_sees_all_tickets_newest_first(app_client, user_repo):
    jane = signup(app_client, "jane@example.com")["token"]
    admin_token = make_admin(app_client, user_repo)

    for title in ("First", "Second"):
        app_client.post("/api/tickets", json={"title": title, "description": "d"}, headers=auth_header(jane))

    listed = app_client.get("/api/tickets", headers=auth_header(admin_token)).json()
    assert [t["title"] for t in listed] == ["Second", "First"]
    assert "helpful_notes" in listed[0]


def test_list_filters_by_status(app_client, user_repo):
    jane = signup(app_client, "jane@example.com")["token"]
    app_client.post("/api/tickets", json={"title": "T", "description": "d"}, headers=auth_header(jane))

    todo = app_client.get("/api/tickets", params={"status": "TODO"}, headers=auth_header(jane)).json()
    started = app_client.get("/api/tickets", params={"status": "IN_PROGRESS"}, headers=auth_header(jane)).json()

    assert todo == []
    assert len(started) == 1


def test_unknown_ticket_is_404(app_client):
    token = signup(app_client, "jane@example.com")["token"]

    r = app_client.get("/api/tickets/not-a-ticket", headers=auth_header(token))

    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_delete_own_ticket(app_client):
    token = signup(app_client, "jane@example.com")["token"]
    created = app_client.post("/api/tickets", json={"title": "T", "description": "d"}, headers=auth_header(token)).json()
    ticket_id = created["ticket"]["id"]

    r = app_client.delete(f"/api/tickets/{ticket_id}", headers=auth_header(token))
    assert r.status_code == 200
    assert r.json()["id"] == ticket_id

    assert app_client.get(f"/api/tickets/{ticket_id}", headers=auth_header(token)).status_code == 404


def test_user_cannot_delete_someone_elses_ticket(app_client):
    jane = signup(app_client, "jane@example.com")["token"]
    bob = signup(app_client, "bob@example.com")["token"]
    created = app_client.post("/api/tickets", json={"title": "T", "description": "d"}, headers=auth_header(jane)).json()

    r = app_client.delete(f"/api/tickets/{created['ticket']['id']}", headers=auth_header(bob))

    assert r.status_code == status.HTTP_404_NOT_FOUND
