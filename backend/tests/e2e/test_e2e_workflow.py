"""End-to-End workflow tests for One Cre.

This module covers the core user workflows through the HTTP API:
1. Health check and service availability
2. Sign-up, sign-in and session cookie
3. Workspace lifecycle (create, plan, assign, attach, delete)
4. Assignment notifications and the activity log
5. Admin dashboard over the resulting data

Usage:
    # Run all E2E tests
    pytest backend/tests/e2e/test_e2e_workflow.py -v

    # Run specific test class
    pytest backend/tests/e2e/test_e2e_workflow.py::TestCompleteWorkflow -v
"""

from fastapi.testclient import TestClient

from app.services import activity_service
from app.services.activity_service import ActivityType
from app.settings import settings


def plan(assignee: str) -> dict:
    return {
        "goals": [
            {
                "id": "g1",
                "title": "Ship v1",
                "priority": "High",
                "milestones": [
                    {
                        "id": "m1",
                        "title": "Beta",
                        "tasks": [
                            {
                                "id": "t1",
                                "title": "Write docs",
                                "status": "In Progress",
                                "assignedTo": assignee,
                                "endDate": "2026-11-01T00:00:00.000Z",
                            }
                        ],
                    }
                ],
            }
        ]
    }


class TestServiceAvailability:
    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": True, "redis": True}

    def test_server_info(self, client: TestClient):
        info = client.get("/api/server-info").json()

        assert info["serverUrl"] == "http://testserver"
        assert info["host"] == "testserver"
        assert info["frontendUrl"] == settings.frontend_url.rstrip("/")

    def test_server_info_behind_tls_proxy(self, client: TestClient):
        info = client.get("/api/server-info", headers={"X-Forwarded-Proto": "https"}).json()

        assert info["protocol"] == "https"
        assert info["serverUrl"] == "https://testserver"


class TestSprintScenario:
    """Notifications fire only when a task gains an assignee."""

    def test_assignment_notifies_once(self, client: TestClient, make_user, auth_headers, outbox):
        owner = make_user("owner@x.com", name="Owner")
        headers = auth_headers(owner)

        created = client.post("/api/workspaces", json={"name": "Sprint", "members": ["a@x.com"]}, headers=headers)
        assert created.status_code == 200
        workspace_id = created.json()["workspace"]["id"]

        unassigned = client.put(f"/api/workspaces/{workspace_id}", json=plan(""), headers=headers)
        assert unassigned.status_code == 200
        assert outbox == []

        assigned = client.put(f"/api/workspaces/{workspace_id}", json=plan("b@x.com"), headers=headers)
        assert assigned.status_code == 200

        (message,) = outbox
        assert message["To"] == "b@x.com"
        assert message["Subject"] == "New Task Assignment: Write docs"

        updates = activity_service.query(types=[ActivityType.WORKSPACE_UPDATED.value])
        assert updates.totalCount == 2
        assert sorted(a.metadata["assignmentChanges"] for a in updates.activities) == [0, 1]

        # Re-saving the same tree is not a new assignment
        client.put(f"/api/workspaces/{workspace_id}", json=plan("b@x.com"), headers=headers)
        assert len(outbox) == 1


class TestCompleteWorkflow:
    def test_full_lifecycle(self, client: TestClient, admin, make_user, auth_headers, outbox):
        # 1. Sign up and sign in with a password
        assert client.post(
            "/api/signup", json={"name": "Lead", "email": "lead@x.com", "password": "secret123"}
        ).status_code == 200
        signin = client.post("/api/signin", json={"email": "lead@x.com", "password": "secret123"})
        assert signin.status_code == 200
        assert client.get("/api/current_user").json()["email"] == "lead@x.com"

        # 2. Create a workspace (session cookie identifies the caller)
        workspace = client.post("/api/workspaces", json={"name": "Launch"}).json()["workspace"]
        assert workspace["owner"] == "lead@x.com"

        # 3. Add a Google-verified teammate and plan work for them
        make_user("dev@x.com", name="Dev")
        added = client.post(f"/api/workspaces/{workspace['id']}/add-member", json={"email": "dev@x.com"})
        assert added.status_code == 200
        client.put(f"/api/workspaces/{workspace['id']}", json=plan("dev@x.com"))
        assert [m["To"] for m in outbox] == ["dev@x.com"]

        # 4. The teammate sees the workspace and a notification
        feed = client.get("/api/notifications/dev@x.com", params={"email": "dev@x.com"})
        # The lead's session wins over ?email=
        assert feed.status_code == 403
        client.cookies.clear()
        feed = client.get("/api/notifications/dev@x.com", params={"email": "dev@x.com"})
        assert len(feed.json()["notifications"]) == 1
        listed = client.get("/api/workspaces/dev@x.com", params={"email": "dev@x.com"}).json()
        assert [w["id"] for w in listed] == [workspace["id"]]

        # 5. The teammate attaches a file
        uploaded = client.post(
            f"/api/workspaces/{workspace['id']}/tasks/t1/attachments",
            params={"email": "dev@x.com"},
            files={"file": ("brief.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert uploaded.status_code == 200

        # 6. The admin sees the activity and statistics
        admin_headers = auth_headers(admin)
        stats = client.get("/api/admin/stats", headers=admin_headers).json()
        assert stats["current"]["totalWorkspaces"] == 1
        assert stats["current"]["totalTasks"] == 1
        types = {a["type"] for a in client.get("/api/admin/activities", headers=admin_headers).json()["activities"]}
        assert {"signup", "login", "workspace_created", "member_added", "workspace_updated", "file_uploaded"} <= types

        # 7. Only the owner (or an admin) can delete; files go with it
        assert client.delete(f"/api/workspaces/{workspace['id']}", params={"email": "dev@x.com"}).status_code == 403
        deleted = client.delete(f"/api/workspaces/{workspace['id']}", headers=admin_headers)
        assert deleted.json()["deletedFiles"] == 1
