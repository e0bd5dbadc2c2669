"""End-to-end checks through the HTTP layer: auth, envelopes and wire format."""

import json
import logging
from datetime import timedelta

from ticketdesk.core.logging import JsonLogFormatter
from ticketdesk.core.security import create_access_token


def _register(client, username="ada", password="secret123"):
    return client.post(
        "/api/auth/register",
        json={
            "email": f"{username}@example.com",
            "username": username,
            "password": password,
            "firstName": username.title(),
        },
    )


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_login_and_me(client):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["tokenType"] == "bearer"
    assert body["user"]["firstName"] == "Ada"
    assert "passwordHash" not in body["user"]
    assert "password_hash" not in body["user"]

    resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret123"})
    assert resp.status_code == 200
    token = resp.json()["token"]

    resp = client.get("/api/auth/me", headers=_bearer(token))
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "ada"


def test_duplicate_registration_is_reported(client):
    _register(client)
    resp = _register(client)
    assert resp.status_code == 400
    assert resp.json()["code"] == "conflict"


def test_bad_credentials(client):
    _register(client)
    resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-one"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials", "code": "unauthenticated"}


def test_missing_invalid_and_expired_tokens(client, make_user):
    user = make_user("ada")

    resp = client.get("/api/projects")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Access token required"
    assert resp.headers["WWW-Authenticate"] == "Bearer"

    assert client.get("/api/projects", headers=_bearer("not-a-jwt")).status_code == 401

    expired = create_access_token(user.id, expires_delta=timedelta(minutes=-5))
    assert client.get("/api/projects", headers=_bearer(expired)).status_code == 401


def test_request_validation_uses_error_envelope(client, make_user, headers_for):
    user = make_user("ada")
    resp = client.post("/api/projects", json={"description": "no name"}, headers=headers_for(user))
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "validation_error"
    assert body["details"]["errors"]


def test_project_flow_over_http(client, make_user, headers_for):
    owner = make_user("owner")
    member = make_user("member")
    outsider = make_user("outsider")

    resp = client.post("/api/projects", json={"name": "Apollo"}, headers=headers_for(owner))
    assert resp.status_code == 201
    project = resp.json()["project"]
    assert project["createdBy"] == owner.id
    assert [m["role"] for m in project["members"]] == ["OWNER"]
    project_id = project["id"]

    resp = client.post(
        f"/api/projects/{project_id}/members",
        json={"userId": member.id, "role": "MEMBER"},
        headers=headers_for(owner),
    )
    assert resp.status_code == 201
    assert resp.json()["member"]["user"]["username"] == "member"

    resp = client.post(
        f"/api/projects/{project_id}/members",
        json={"userId": member.id},
        headers=headers_for(owner),
    )
    assert resp.status_code == 400

    resp = client.delete(f"/api/projects/{project_id}/members/{owner.id}", headers=headers_for(owner))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Cannot remove project owner"

    resp = client.get(f"/api/projects/{project_id}", headers=headers_for(outsider))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Project access denied", "code": "forbidden"}

    resp = client.get("/api/projects", headers=headers_for(member))
    assert [p["ticketCount"] for p in resp.json()["projects"]] == [0]


def test_ticket_flow_over_http(client, make_user, headers_for):
    owner = make_user("owner")
    viewer = make_user("viewer")
    outsider = make_user("outsider")
    project_id = client.post("/api/projects", json={"name": "Apollo"}, headers=headers_for(owner)).json()[
        "project"
    ]["id"]
    client.post(
        f"/api/projects/{project_id}/members",
        json={"userId": viewer.id, "role": "VIEWER"},
        headers=headers_for(owner),
    )

    for index in range(15):
        resp = client.post(
            "/api/tickets",
            json={"title": f"Ticket {index}", "description": "Something", "projectId": project_id},
            headers=headers_for(owner),
        )
        assert resp.status_code == 201
    ticket_id = resp.json()["ticket"]["id"]

    resp = client.get(
        "/api/tickets",
        params={"projectId": project_id, "page": 2, "limit": 10},
        headers=headers_for(viewer),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["tickets"]) == 5
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 15, "pages": 2}

    resp = client.get("/api/tickets", params={"limit": 101}, headers=headers_for(viewer))
    assert resp.status_code == 400

    resp = client.put(f"/api/tickets/{ticket_id}", json={"status": "RESOLVED"}, headers=headers_for(viewer))
    assert resp.status_code == 403
    resp = client.put(f"/api/tickets/{ticket_id}", json={"title": "Renamed"}, headers=headers_for(viewer))
    assert resp.status_code == 200
    assert resp.json()["ticket"]["status"] == "OPEN"

    resp = client.post(
        "/api/comments",
        json={"content": "Seen", "ticketId": ticket_id},
        headers=headers_for(viewer),
    )
    assert resp.status_code == 201

    resp = client.get(f"/api/tickets/{ticket_id}", headers=headers_for(owner))
    ticket = resp.json()["ticket"]
    assert ticket["commentCount"] == 1
    assert ticket["comments"][0]["user"]["username"] == "viewer"

    assert client.get(f"/api/tickets/{ticket_id}", headers=headers_for(outsider)).status_code == 403
    assert client.get("/api/tickets/9999", headers=headers_for(owner)).status_code == 404
    assert client.delete(f"/api/tickets/{ticket_id}", headers=headers_for(viewer)).status_code == 403
    assert client.delete(f"/api/tickets/{ticket_id}", headers=headers_for(owner)).status_code == 200


def test_labels_over_http(client, make_user, headers_for):
    owner = make_user("owner")
    project_id = client.post("/api/projects", json={"name": "Apollo"}, headers=headers_for(owner)).json()[
        "project"
    ]["id"]
    ticket_id = client.post(
        "/api/tickets",
        json={"title": "T", "description": "D", "projectId": project_id},
        headers=headers_for(owner),
    ).json()["ticket"]["id"]

    resp = client.post("/api/labels", json={"name": "bug", "color": "#EF4444"}, headers=headers_for(owner))
    assert resp.status_code == 201
    label_id = resp.json()["label"]["id"]

    resp = client.post(f"/api/tickets/{ticket_id}/labels", json={"labelId": label_id}, headers=headers_for(owner))
    assert [label["name"] for label in resp.json()["ticket"]["labels"]] == ["bug"]

    for _ in range(2):
        resp = client.delete(f"/api/tickets/{ticket_id}/labels/{label_id}", headers=headers_for(owner))
        assert resp.status_code == 200
        assert resp.json()["ticket"]["labels"] == []

    resp = client.get("/api/labels", headers=headers_for(owner))
    assert [label["name"] for label in resp.json()["labels"]] == ["bug"]


def test_user_routes(client, make_user, headers_for):
    admin = make_user("admin", role="ADMIN")
    dev = make_user("dev")

    resp = client.get("/api/users", params={"search": "dev"}, headers=headers_for(dev))
    assert resp.status_code == 200
    assert [u["username"] for u in resp.json()["users"]] == ["dev"]

    assert client.get(f"/api/users/{admin.id}", headers=headers_for(dev)).status_code == 403
    assert client.put(f"/api/users/{dev.id}/role", json={"role": "MANAGER"}, headers=headers_for(dev)).status_code == 403

    resp = client.put(f"/api/users/{dev.id}/role", json={"role": "MANAGER"}, headers=headers_for(admin))
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "MANAGER"

    resp = client.get(f"/api/users/{dev.id}/stats", headers=headers_for(dev))
    assert resp.json()["stats"]["assignedTickets"] == 0


def test_health_metrics_and_headers(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert resp.json() == {"ok": True}
    assert resp.headers["X-Request-ID"] == "abc123"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"

    assert client.get("/metrics").status_code == 200


class _JsonLines(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.INFO)
        self.setFormatter(JsonLogFormatter())
        self.lines: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(json.loads(self.format(record)))


def test_service_log_lines_carry_request_id_and_principal(client, make_user, headers_for):
    owner = make_user("owner")
    service_logger = logging.getLogger("ticketdesk.crud.projects")
    handler = _JsonLines()
    previous_level = service_logger.level
    service_logger.addHandler(handler)
    service_logger.setLevel(logging.INFO)
    try:
        resp = client.post(
            "/api/projects",
            json={"name": "Apollo"},
            headers={**headers_for(owner), "X-Request-ID": "req-42"},
        )
    finally:
        service_logger.removeHandler(handler)
        service_logger.setLevel(previous_level)

    assert resp.status_code == 201
    created = [line for line in handler.lines if line["event"] == "project.created"]
    assert len(created) == 1
    assert created[0]["principal"] == f"user:{owner.id}"
    assert created[0]["request_id"] == "req-42"
    assert created[0]["project_id"] == resp.json()["project"]["id"]


def test_unsafe_request_id_is_replaced_and_api_responses_are_private(client, make_user, headers_for):
    user = make_user("ada")

    resp = client.get("/api/labels", headers={**headers_for(user), "X-Request-ID": "a b"})
    assert resp.headers["X-Request-ID"] != "a b"
    assert resp.headers["Cache-Control"] == "no-store"
    assert resp.headers["Content-Security-Policy"] == "default-src 'none'; frame-ancestors 'none'"

    assert "Cache-Control" not in client.get("/health").headers
