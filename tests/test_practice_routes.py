"""
Tests for the practice panel HTTP API.

Services are wired to in-memory repositories through FastAPI dependency
overrides.
"""

import pytest
from fastapi.testclient import TestClient

from practice_panel.api import create_app, status_for_error
from practice_panel.errors import (
    CapacityError,
    ConflictError,
    InconsistencyError,
    LockedError,
    NotFoundError,
    PartialFailureError,
    PreconditionError,
    ValidationError,
)
from practice_panel.staff import AssignmentManager
from services import (
    get_assignment_manager,
    get_dashboard_service,
    get_document_service,
    get_lock_service,
    get_note_service,
)
from services.dashboard_service import DashboardService
from services.document_service import DocumentService
from services.lock_service import LockService
from services.note_service import NoteService


BASE = "/api/practice"


class FailingEmployeeSaves:
    """Employee repository whose writes always fail."""

    def __init__(self, delegate):
        self.delegate = delegate

    def save(self, entity):
        raise RuntimeError("storage unavailable")

    def __getattr__(self, name):
        return getattr(self.delegate, name)


@pytest.fixture
def app(client_repo, employee_repo, audit_logger, notifier, settings):
    app = create_app()
    app.dependency_overrides[get_document_service] = lambda: DocumentService(
        client_repo, audit_logger=audit_logger, settings=settings)
    app.dependency_overrides[get_lock_service] = lambda: LockService(
        client_repo, audit_logger=audit_logger, settings=settings)
    app.dependency_overrides[get_note_service] = lambda: NoteService(
        client_repo, audit_logger=audit_logger, settings=settings)
    app.dependency_overrides[get_dashboard_service] = lambda: DashboardService(
        client_repo, employee_repo, settings=settings)
    app.dependency_overrides[get_assignment_manager] = lambda: AssignmentManager(
        client_repo, employee_repo, audit_logger=audit_logger, notifier=notifier, settings=settings)
    return app


@pytest.fixture
def api(app):
    return TestClient(app)


def upload_body(*names, **extra):
    body = {
        "category": "sales",
        "files": [{"url": f"https://files.example.com/{n}", "file_name": n, "file_size": 10} for n in names],
        "actor": "C1",
    }
    body.update(extra)
    return body


def assign_body(task="Bookkeeping", employee_id="E1", **extra):
    body = {"client_id": "C1", "employee_id": employee_id, "year": 2025, "month": 3, "task": task,
            "actor": "admin"}
    body.update(extra)
    return body


class TestErrorMapping:

    @pytest.mark.parametrize("error,status", [
        (ValidationError("x"), 400),
        (NotFoundError("x"), 404),
        (ConflictError("x"), 409),
        (CapacityError("x"), 409),
        (InconsistencyError("x"), 409),
        (PreconditionError("x"), 412),
        (LockedError("x"), 423),
        (PartialFailureError("x", rollback_completed=True), 500),
    ])
    def test_status_for_error(self, error, status):
        assert status_for_error(error) == status


class TestHealthAndContext:

    def test_health(self, api):
        response = api.get(f"{BASE}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_echoed(self, api, client_with_documents):
        response = api.get(f"{BASE}/clients/C1/documents/2025/3", headers={"X-Request-ID": "req_test"})

        assert response.headers["X-Request-ID"] == "req_test"
        assert response.json()["request_id"] == "req_test"

    def test_request_id_generated(self, api):
        response = api.get(f"{BASE}/health")
        assert response.headers["X-Request-ID"].startswith("req_")


class TestDocumentRoutes:
    """Test upload, delete and replace endpoints."""

    def test_upload(self, api, client_repo, client):
        response = api.post(f"{BASE}/clients/C1/documents/2025/3/upload", json=upload_body("a.pdf"))

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["files_count"] == 1
        assert client_repo.get("C1").get_month(2025, 3).sales.files[0].file_name == "a.pdf"

    def test_upload_locked_month(self, api, client_with_documents):
        api.post(f"{BASE}/clients/C1/months/2025/3/lock", json={"locked": True, "actor": "admin"})

        response = api.post(f"{BASE}/clients/C1/documents/2025/3/upload", json=upload_body("late.pdf"))

        assert response.status_code == 423
        assert response.json()["code"] == "LOCKED"

    def test_upload_after_unlock_requires_note(self, api, client_with_documents):
        api.post(f"{BASE}/clients/C1/months/2025/3/lock", json={"locked": True, "actor": "admin"})
        api.post(f"{BASE}/clients/C1/months/2025/3/lock", json={"locked": False, "actor": "admin"})

        missing = api.post(f"{BASE}/clients/C1/documents/2025/3/upload", json=upload_body("fix.pdf"))
        given = api.post(f"{BASE}/clients/C1/documents/2025/3/upload",
                         json=upload_body("fix.pdf", note="Corrected invoice"))

        assert missing.status_code == 400
        assert missing.json()["details"]["note_required"] is True
        assert given.status_code == 201
        assert given.json()["note_recorded"] is True

    def test_invalid_month(self, api, client):
        response = api.post(f"{BASE}/clients/C1/documents/2025/13/upload", json=upload_body("a.pdf"))
        assert response.status_code == 400

    def test_invalid_category(self, api, client):
        response = api.post(f"{BASE}/clients/C1/documents/2025/3/upload",
                            json=upload_body("a.pdf", category="invoices"))
        assert response.status_code == 400

    def test_other_requires_name(self, api, client):
        response = api.post(f"{BASE}/clients/C1/documents/2025/3/upload",
                            json=upload_body("a.pdf", category="other"))
        assert response.status_code == 400

    def test_empty_file_list_is_unprocessable(self, api, client):
        response = api.post(f"{BASE}/clients/C1/documents/2025/3/upload", json=upload_body())

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_client(self, api):
        response = api.post(f"{BASE}/clients/C9/documents/2025/3/upload", json=upload_body("a.pdf"))
        assert response.status_code == 404

    def test_delete(self, api, client_with_documents):
        response = api.post(f"{BASE}/clients/C1/documents/2025/3/delete", json={
            "category": "sales", "file_name": "inv-1.pdf", "actor": "C1", "reason": "Duplicate",
        })

        assert response.status_code == 200
        assert response.json()["removed_file"]["file_name"] == "inv-1.pdf"

    def test_replace(self, api, client_with_documents):
        response = api.post(f"{BASE}/clients/C1/documents/2025/3/replace", json={
            "category": "sales",
            "file_name": "inv-1.pdf",
            "new_file": {"url": "https://files.example.com/inv-1b.pdf", "file_name": "inv-1b.pdf"},
            "actor": "C1",
        })

        assert response.status_code == 200
        assert response.json()["file"]["file_name"] == "inv-1b.pdf"

    def test_get_month(self, api, client_with_documents):
        response = api.get(f"{BASE}/clients/C1/documents/2025/3")

        assert response.status_code == 200
        assert response.json()["categories"]["sales"]["files_count"] == 2


class TestLockRoutes:

    def test_lock_month(self, api, client_with_documents):
        response = api.post(f"{BASE}/clients/C1/months/2025/3/lock", json={"locked": True, "actor": "admin"})

        assert response.status_code == 200
        assert response.json()["files_affected"] == 2

    def test_unlock_category(self, api, client_repo, client_with_documents):
        api.post(f"{BASE}/clients/C1/months/2025/3/lock", json={"locked": True, "actor": "admin"})

        response = api.post(f"{BASE}/clients/C1/months/2025/3/categories/lock",
                            json={"category": "sales", "locked": False, "actor": "admin"})

        assert response.json()["month_locked"] is True
        assert client_repo.get("C1").get_month(2025, 3).sales.is_locked is False

    def test_run_auto_lock(self, api, client):
        response = api.post(f"{BASE}/locks/auto-lock/run")

        assert response.status_code == 200
        assert response.json()["stats"]["locked"] == 1


class TestNotesRoutes:
    """Test listing and read tracking over HTTP."""

    def test_note_flow(self, api, client_with_documents):
        api.post(f"{BASE}/clients/C1/months/2025/3/notes", json={"text": "Statement coming", "author_id": "C1"})
        created = api.post(f"{BASE}/clients/C1/documents/2025/3/file-notes", json={
            "category": "sales", "file_name": "inv-1.pdf", "text": "Missing VAT number", "employee_id": "E1",
        })
        assert created.status_code == 201

        count = api.get(f"{BASE}/clients/C1/notes/unviewed-count", params={"viewer_id": "C1"})
        assert count.json()["unviewed"] == 2

        note_id = created.json()["note"]["note_id"]
        viewed = api.post(f"{BASE}/clients/C1/notes/{note_id}/view",
                          json={"viewer_id": "C1", "viewer_kind": "client"})
        assert viewed.json()["newly_viewed"] is True
        assert viewed.json()["source"] == "employee"

        listing = api.get(f"{BASE}/clients/C1/notes", params={"viewer_id": "C1", "viewer_kind": "client"})
        assert listing.json()["total"] == 2
        assert {n["note_id"]: n["is_viewed"] for n in listing.json()["notes"]}[note_id] is True

        marked = api.post(f"{BASE}/clients/C1/notes/view-all", json={"viewer_id": "C1", "viewer_kind": "client"})
        assert marked.json()["marked"] == 1

    def test_unknown_note(self, api, client):
        response = api.post(f"{BASE}/clients/C1/notes/missing/view", json={"viewer_id": "C1", "viewer_kind": "client"})
        assert response.status_code == 404

    def test_bad_viewer_kind(self, api, client):
        response = api.post(f"{BASE}/clients/C1/notes/view-all", json={"viewer_id": "C1", "viewer_kind": "robot"})
        assert response.status_code == 422


class TestAssignmentRoutes:
    """Test assignment endpoints and their status codes."""

    def test_assign(self, api, client_with_documents, employees):
        response = api.post(f"{BASE}/assignments", json=assign_body())

        assert response.status_code == 201
        assert response.json()["assignment"]["task"] == "Bookkeeping"

    def test_duplicate_is_conflict(self, api, client_with_documents, employees):
        api.post(f"{BASE}/assignments", json=assign_body())
        response = api.post(f"{BASE}/assignments", json=assign_body(employee_id="E2"))

        assert response.status_code == 409

    def test_capacity(self, api, client_with_documents, employees):
        for i, task in enumerate(["Bookkeeping", "VAT Filing Computation", "VAT Filing",
                                  "Financial Statement Generation"]):
            api.post(f"{BASE}/assignments", json=assign_body(task, employee_id="E1" if i % 2 else "E2"))

        response = api.post(f"{BASE}/assignments", json=assign_body("Audit"))

        assert response.status_code == 409
        assert response.json()["code"] == CapacityError.code

    def test_no_documents_is_precondition_failure(self, api, client, employees):
        response = api.post(f"{BASE}/assignments", json=assign_body())
        assert response.status_code == 412

    def test_unknown_task(self, api, client_with_documents, employees):
        response = api.post(f"{BASE}/assignments", json=assign_body("Audit"))
        assert response.status_code == 400

    def test_partial_failure_reports_rollback(self, app, client_repo, employee_repo, audit_logger, settings,
                                              client_with_documents, employees):
        app.dependency_overrides[get_assignment_manager] = lambda: AssignmentManager(
            client_repo, FailingEmployeeSaves(employee_repo), audit_logger=audit_logger, settings=settings)

        response = TestClient(app).post(f"{BASE}/assignments", json=assign_body())

        assert response.status_code == 500
        assert response.json()["details"]["rollback_completed"] is True
        assert client_repo.get("C1").active_assignments(2025, 3) == []

    def test_remove_and_complete(self, api, client_with_documents, employees):
        api.post(f"{BASE}/assignments", json=assign_body())
        api.post(f"{BASE}/assignments", json=assign_body("VAT Filing"))

        completed = api.post(f"{BASE}/assignments/complete", json=assign_body("VAT Filing", actor="E1"))
        removed = api.post(f"{BASE}/assignments/remove", json=assign_body(reason="Reassigned"))
        blocked = api.post(f"{BASE}/assignments/remove", json=assign_body("VAT Filing"))

        assert completed.json()["assignment"]["accounting_done"] is True
        assert removed.json()["removal"]["removal_reason"] == "Reassigned"
        assert blocked.status_code == 409

    def test_task_status(self, api, client_with_documents, employees):
        api.post(f"{BASE}/assignments", json=assign_body())

        response = api.get(f"{BASE}/clients/C1/tasks/2025/3")

        statuses = {t["task"]: t["status"] for t in response.json()["tasks"]}
        assert statuses["Bookkeeping"] == "assigned"
        assert statuses["VAT Filing"] == "not_assigned"

    def test_deactivate_employee(self, api, employee_repo, client_with_documents, employees):
        api.post(f"{BASE}/assignments", json=assign_body())

        response = api.post(f"{BASE}/employees/E1/deactivate",
                            json={"actor": "admin", "as_of": "2025-03-20T09:00:00"})

        assert response.status_code == 200
        assert [t["task"] for t in response.json()["removed_tasks"]] == ["Bookkeeping"]
        assert employee_repo.get("E1").is_active is False


class TestDashboardRoutes:

    def test_client_summary(self, api, client_with_documents):
        response = api.get(f"{BASE}/clients/C1/summary", params={"viewer_id": "E1"})

        assert response.status_code == 200
        assert response.json()["total_files"] == 2
        assert response.json()["unviewed_notes"] == 0

    def test_employee_summary_unknown(self, api):
        assert api.get(f"{BASE}/employees/E9/summary").status_code == 404
