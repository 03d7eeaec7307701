"""
Tests for DocumentService.

Covers:
- Upload, delete and replace flows against stored clients
- Lock guard and update-note rule
- Optimistic month creation under concurrent writers
"""

import pytest

from audit.audit_logger import AuditEventType
from domain.value_objects import CategorySelector
from practice_panel.errors import ConflictError, LockedError, NotFoundError, ValidationError
from practice_panel.workflow.lock_cascade import set_category_lock, set_month_lock
from services.document_service import DocumentService


SALES = CategorySelector.standard("sales")
PAYROLL = CategorySelector.other("Payroll")


@pytest.fixture
def service(client_repo, audit_logger, settings):
    return DocumentService(client_repo, audit_logger=audit_logger, settings=settings)


def lock_month(client_repo, year=2025, month=3, locked=True):
    client = client_repo.get("C1")
    set_month_lock(client.get_month(year, month), locked, "admin")
    client_repo.save(client)


class RacingRepository:
    """
    Client repository where another writer creates a month between our
    read and our optimistic write, `races` times.
    """

    def __init__(self, delegate, races, make_file):
        self.delegate = delegate
        self.races = races
        self.make_file = make_file
        self.version_checks = 0

    def save_with_version(self, entity, expected_version):
        self.version_checks += 1
        if self.races:
            self.races -= 1
            from practice_panel.documents.tree_store import attach_files, get_or_create_month

            other = self.delegate.get(entity.client_id)
            record = get_or_create_month(other, 2025, 5)
            attach_files(record, CategorySelector.standard("bank"), [self.make_file(f"other-{self.races}.pdf")])
            self.delegate.save(other)
        return self.delegate.save_with_version(entity, expected_version)

    def __getattr__(self, name):
        return getattr(self.delegate, name)


class TestUpload:
    """Test upload_files."""

    def test_upload_creates_month(self, service, client_repo, audit_logger, client, make_file):
        result = service.upload_files("C1", 2025, 3, SALES, [make_file("a.pdf")], actor="C1")

        stored = client_repo.get("C1").get_month(2025, 3)
        assert [f.file_name for f in stored.sales.files] == ["a.pdf"]
        assert result["files_count"] == 1
        assert result["category"] == "sales"
        assert result["note_recorded"] is False
        assert audit_logger.log.call_args.kwargs["event_type"] == AuditEventType.DOCUMENT_UPLOAD

    def test_upload_to_other_category(self, service, client_repo, client_with_documents, make_file):
        service.upload_files("C1", 2025, 3, PAYROLL, [make_file("p.pdf")], actor="C1")

        assert client_repo.get("C1").get_month(2025, 3).find_other("Payroll").document.files[0].file_name == "p.pdf"

    def test_upload_requires_files(self, service, client):
        with pytest.raises(ValidationError):
            service.upload_files("C1", 2025, 3, SALES, [], actor="C1")

    def test_upload_unknown_client(self, service, make_file):
        with pytest.raises(NotFoundError):
            service.upload_files("C9", 2025, 3, SALES, [make_file()], actor="C9")

    def test_upload_blocked_by_month_lock(self, service, client_repo, client_with_documents, make_file):
        lock_month(client_repo)

        with pytest.raises(LockedError):
            service.upload_files("C1", 2025, 3, SALES, [make_file("late.pdf")], actor="C1")
        assert len(client_repo.get("C1").get_month(2025, 3).sales.files) == 2

    def test_new_other_category_blocked_by_month_lock(self, service, client_repo, client_with_documents, make_file):
        lock_month(client_repo)

        with pytest.raises(LockedError):
            service.upload_files("C1", 2025, 3, PAYROLL, [make_file()], actor="C1")

    def test_category_unlock_allows_upload_with_note(self, service, client_repo, client_with_documents, make_file):
        """After a month lock, an unlocked category accepts files once a note is given."""
        lock_month(client_repo)
        client = client_repo.get("C1")
        set_category_lock(client.get_month(2025, 3), SALES, False, "admin")
        client_repo.save(client)

        with pytest.raises(ValidationError) as exc:
            service.upload_files("C1", 2025, 3, SALES, [make_file("fix.pdf")], actor="C1")
        assert exc.value.details["note_required"] is True

        result = service.upload_files("C1", 2025, 3, SALES, [make_file("fix.pdf")], actor="C1",
                                      actor_name="Acme", note="Corrected invoice")

        record = client_repo.get("C1").get_month(2025, 3)
        assert result["note_recorded"] is True
        assert len(record.sales.files) == 3
        assert record.sales.category_notes[-1].text == "Corrected invoice"
        assert record.month_notes[-1].text == "Corrected invoice"

    def test_unlocked_month_after_lock_requires_note(self, service, client_repo, client_with_documents, make_file):
        lock_month(client_repo)
        lock_month(client_repo, locked=False)

        with pytest.raises(ValidationError):
            service.upload_files("C1", 2025, 3, SALES, [make_file("fix.pdf")], actor="C1", note="  ")


class TestDelete:
    """Test delete_file."""

    def test_delete_records_reason(self, service, client_repo, client_with_documents):
        result = service.delete_file("C1", 2025, 3, SALES, "inv-1.pdf", actor="C1", reason="Duplicate upload")

        record = client_repo.get("C1").get_month(2025, 3)
        assert [f.file_name for f in record.sales.files] == ["inv-2.pdf"]
        assert record.sales.category_notes[0].text == "Duplicate upload"
        assert record.month_notes[0].text == "Duplicate upload"
        assert result["removed_file"]["url"].endswith("inv-1.pdf")
        assert result["files_count"] == 1

    def test_delete_requires_reason(self, service, client_with_documents):
        with pytest.raises(ValidationError):
            service.delete_file("C1", 2025, 3, SALES, "inv-1.pdf", actor="C1", reason=" ")

    def test_delete_missing_file(self, service, client_with_documents):
        with pytest.raises(NotFoundError):
            service.delete_file("C1", 2025, 3, SALES, "nope.pdf", actor="C1", reason="x")

    def test_delete_missing_month(self, service, client_with_documents):
        with pytest.raises(NotFoundError):
            service.delete_file("C1", 2025, 7, SALES, "inv-1.pdf", actor="C1", reason="x")

    def test_delete_blocked_by_lock(self, service, client_repo, client_with_documents):
        lock_month(client_repo)

        with pytest.raises(LockedError):
            service.delete_file("C1", 2025, 3, SALES, "inv-1.pdf", actor="C1", reason="x")


class TestReplace:
    """Test replace_file."""

    def test_replace_swaps_file(self, service, client_repo, client_with_documents, make_file):
        result = service.replace_file("C1", 2025, 3, SALES, "inv-1.pdf", make_file("inv-1b.pdf"), actor="C1")

        names = [f.file_name for f in client_repo.get("C1").get_month(2025, 3).sales.files]
        assert names == ["inv-2.pdf", "inv-1b.pdf"]
        assert result["removed_file"]["file_name"] == "inv-1.pdf"
        assert result["note_recorded"] is False

    def test_replace_after_lock_requires_note(self, service, client_repo, client_with_documents, make_file):
        lock_month(client_repo)
        lock_month(client_repo, locked=False)

        with pytest.raises(ValidationError):
            service.replace_file("C1", 2025, 3, SALES, "inv-1.pdf", make_file("new.pdf"), actor="C1")

        service.replace_file("C1", 2025, 3, SALES, "inv-1.pdf", make_file("new.pdf"), actor="C1",
                             note="Updated bank details")
        record = client_repo.get("C1").get_month(2025, 3)
        assert record.sales.category_notes[-1].text == "Updated bank details"

    def test_replace_missing_file(self, service, client_with_documents, make_file):
        with pytest.raises(NotFoundError):
            service.replace_file("C1", 2025, 3, SALES, "nope.pdf", make_file(), actor="C1")


class TestEnsureMonth:
    """Test optimistic month creation."""

    def test_existing_month_reused(self, service, client_with_documents):
        record = service.ensure_month("C1", 2025, 3)
        assert len(record.sales.files) == 2

    def test_retries_after_conflict(self, client_repo, settings, client, make_file):
        """Another writer's month survives our creation of a different month."""
        racing = RacingRepository(client_repo, races=1, make_file=make_file)
        service = DocumentService(racing, settings=settings)

        service.upload_files("C1", 2025, 3, SALES, [make_file("mine.pdf")], actor="C1")

        stored = client_repo.get("C1")
        assert racing.version_checks == 2
        assert stored.get_month(2025, 3).sales.files[0].file_name == "mine.pdf"
        assert stored.get_month(2025, 5).bank.files[0].file_name == "other-0.pdf"

    def test_gives_up_after_max_retries(self, client_repo, settings, client, make_file):
        racing = RacingRepository(client_repo, races=settings.month_create_max_retries, make_file=make_file)
        service = DocumentService(racing, settings=settings)

        with pytest.raises(ConflictError) as exc:
            service.ensure_month("C1", 2025, 3)
        assert exc.value.details["retryable"] is True
        assert client_repo.get("C1").get_month(2025, 3) is None


class TestGetMonthDocuments:

    def test_view(self, service, client_with_documents):
        view = service.get_month_documents("C1", 2025, 3)

        assert view["categories"]["sales"]["files_count"] == 2
        assert view["is_locked"] is False

    def test_missing_month(self, service, client_with_documents):
        with pytest.raises(NotFoundError):
            service.get_month_documents("C1", 2024, 3)
