"""
Tests for the client document tree.

Covers:
- Period validation
- Lazy month and category creation
- Appending, finding and removing files
"""

import pytest

from domain.aggregates import Client
from domain.value_objects import CategorySelector
from practice_panel.documents.tree_store import (
    attach_files,
    find_file,
    get_or_create_category,
    get_or_create_month,
    month_has_documents,
    remove_file,
    validate_period,
)
from practice_panel.errors import NotFoundError, ValidationError


SALES = CategorySelector.standard("sales")


class TestValidatePeriod:
    """Test year/month validation."""

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_month_out_of_range(self, month):
        with pytest.raises(ValidationError) as exc:
            validate_period(2025, month)
        assert exc.value.details["month"] == month

    def test_year_window(self):
        """Years outside an explicit window are rejected."""
        validate_period(2020, 1, 2020, 2100)
        validate_period(2100, 12, 2020, 2100)
        with pytest.raises(ValidationError):
            validate_period(2019, 6, 2020, 2100)
        with pytest.raises(ValidationError):
            validate_period(2101, 6, 2020, 2100)

    def test_no_window_accepts_any_year(self):
        validate_period(1999, 6)

    def test_bool_is_not_a_month(self):
        with pytest.raises(ValidationError):
            validate_period(2025, True)


class TestGetOrCreateMonth:
    """Test lazy month creation."""

    def test_creates_zero_valued_month(self):
        """A new month has empty standard categories and is unlocked."""
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)

        assert client.documents["2025"]["3"] is record
        assert record.is_locked is False
        assert record.was_locked_once is False
        assert record.other == []
        assert record.month_notes == []
        for _, category in record.iter_categories():
            assert category.files == []
            assert category.is_locked is False

    def test_reuses_existing_month(self, make_file):
        """An existing month is returned, never replaced."""
        client = Client(client_id="C1")
        first = get_or_create_month(client, 2025, 3)
        attach_files(first, SALES, [make_file()])

        second = get_or_create_month(client, 2025, 3)

        assert second is first
        assert len(second.sales.files) == 1

    def test_year_level_shared_between_months(self):
        client = Client(client_id="C1")
        get_or_create_month(client, 2025, 3)
        get_or_create_month(client, 2025, 4)

        assert set(client.documents["2025"].keys()) == {"3", "4"}

    def test_invalid_month_creates_nothing(self):
        client = Client(client_id="C1")
        with pytest.raises(ValidationError):
            get_or_create_month(client, 2025, 13)
        assert client.documents == {}


class TestFiles:
    """Test attach, find and remove."""

    def test_attach_appends(self, make_file):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)

        attach_files(record, SALES, [make_file("a.pdf")])
        attach_files(record, SALES, [make_file("a.pdf"), make_file("b.pdf")])

        assert [f.file_name for f in record.sales.files] == ["a.pdf", "a.pdf", "b.pdf"]

    def test_attach_creates_other_category(self, make_file):
        """A named 'other' category is created on first use and reused afterwards."""
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)
        payroll = CategorySelector.other("Payroll")

        attach_files(record, payroll, [make_file("p1.pdf")])
        attach_files(record, payroll, [make_file("p2.pdf")])

        assert len(record.other) == 1
        assert record.other[0].category_name == "Payroll"
        assert len(record.other[0].document.files) == 2

    def test_get_or_create_category_standard(self):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)

        assert get_or_create_category(record, CategorySelector.standard("bank")) is record.bank

    def test_remove_returns_descriptor(self, make_file):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)
        attach_files(record, SALES, [make_file("a.pdf"), make_file("b.pdf")])

        removed = remove_file(record, SALES, "a.pdf")

        assert removed.file_name == "a.pdf"
        assert removed.url.endswith("a.pdf")
        assert [f.file_name for f in record.sales.files] == ["b.pdf"]

    def test_remove_missing_file(self):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)

        with pytest.raises(NotFoundError):
            remove_file(record, SALES, "missing.pdf")

    def test_remove_from_missing_other_category(self):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)

        with pytest.raises(NotFoundError):
            remove_file(record, CategorySelector.other("Payroll"), "x.pdf")
        assert record.other == []

    def test_find_file(self, make_file):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)
        attach_files(record, SALES, [make_file("a.pdf")])

        assert find_file(record, SALES, "a.pdf").file_name == "a.pdf"
        with pytest.raises(NotFoundError):
            find_file(record, SALES, "b.pdf")


class TestMonthHasDocuments:

    def test_missing_month(self):
        assert month_has_documents(Client(client_id="C1"), 2025, 3) is False

    def test_empty_month(self):
        client = Client(client_id="C1")
        get_or_create_month(client, 2025, 3)
        assert month_has_documents(client, 2025, 3) is False

    def test_file_in_other_category_counts(self, make_file):
        client = Client(client_id="C1")
        record = get_or_create_month(client, 2025, 3)
        attach_files(record, CategorySelector.other("Payroll"), [make_file()])
        assert month_has_documents(client, 2025, 3) is True


class TestCategorySelector:

    def test_other_requires_name(self):
        with pytest.raises(ValueError):
            CategorySelector.other("  ")

    def test_standard_rejects_name(self):
        with pytest.raises(ValueError):
            CategorySelector(category="sales", name="Extra")

    def test_parse(self):
        assert CategorySelector.parse("bank").label == "bank"
        assert CategorySelector.parse("other", "Payroll").label == "Payroll"
        with pytest.raises(ValueError):
            CategorySelector.parse("invoices")
