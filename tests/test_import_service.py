import datetime

import pytest

from app.core.exceptions import ImportFileError
from app.models.escalation import Escalation
from app.services.escalation_service import BulkInsertResult
from app.services.import_service import NO_VALID_RECORDS, ImportService
from app.utils.branches import BRANCHES
from app.utils.header_aliases import HEADER_ALIASES

from conftest import make_csv, make_xlsx


class FakeStore:
    """Records what would be bulk inserted; can fail the first n rows."""

    def __init__(self, fail_first=0):
        self.calls = []
        self.fail_first = fail_first

    def insert_many(self, rows, principal=None):
        self.calls.append(list(rows))
        result = BulkInsertResult()
        for i, row in enumerate(rows):
            if i < self.fail_first:
                result.failed.append({"index": i, "message": "duplicate key"})
            else:
                result.inserted.append(Escalation(**row))
        return result


def test_end_to_end_csv_three_rows(admin):
    """HYD becomes Hyderabad, an empty branch is rejected."""

    store = FakeStore()
    data = make_csv([
        "Date,Case ID,Branch,Aging",
        "2026-01-15,C-100,Chennai,3",
        "2026-01-16,C-101,HYD,7",
        "2026-01-17,C-102,,2",
    ])

    result = ImportService(store=store).import_file(data, admin, "cases.csv")

    assert result.total_rows == 3
    assert result.accepted == 2
    assert result.rejected == 1
    assert result.inserted == 2
    assert result.failed == 0
    accepted = store.calls[0]
    assert [r["branch"] for r in accepted] == ["Chennai", "Hyderabad"]
    assert accepted[1]["aging"] == 7
    assert accepted[1]["status"] == "Open"


def test_hyd_row_with_empty_branch_row(admin):
    store = FakeStore()
    data = make_csv([
        "Date,Case ID,Branch,Aging",
        "2026-01-16,C-101,HYD,7",
        "2026-01-17,C-102,,2",
    ])

    result = ImportService(store=store).import_file(data, admin, "cases.csv")

    assert (result.accepted, result.rejected) == (1, 1)
    assert store.calls[0][0]["branch"] == "Hyderabad"


@pytest.mark.parametrize("missing", ["date", "case_id", "branch"])
def test_rows_missing_required_fields_are_rejected(admin, missing):
    row = {"date": "2026-01-16", "case_id": "C1", "branch": "Chennai", "brand": "Acme"}
    row[missing] = ""
    rows = [["Date", "Case ID", "Branch", "Brand"], [row["date"], row["case_id"], row["branch"], row["brand"]]]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, admin)

    assert normalized.accepted == []
    assert normalized.rejected == 1
    assert len(normalized.accepted) + normalized.rejected == normalized.total_rows


def test_unresolved_branch_rejected(admin):
    rows = [["date", "id", "branch"], ["2026-01-16", "C1", "Atlantis"], ["2026-01-16", "C2", "rom"]]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, admin)

    assert [r["branch"] for r in normalized.accepted] == ["ROM"]
    assert normalized.rejected == 1


def test_branch_user_only_imports_own_branch(chennai):
    rows = [
        ["Date", "Ticket ID", "Location"],
        ["2026-01-16", "C1", "chennai"],
        ["2026-01-16", "C2", "Hyderabad"],
        ["2026-01-16", "C3", "CHENNAI "],
    ]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, chennai)

    assert [r["case_id"] for r in normalized.accepted] == ["C1", "C3"]
    assert all(r["branch"] == "Chennai" for r in normalized.accepted)
    assert normalized.rejected == 1


def test_rows_with_only_unmapped_data_are_rejected(admin):
    rows = [["Date", "Case ID", "Branch", "Technician"], ["", "", "", "Ravi"], ["2026-01-16", "C1", "Chennai", ""]]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, admin)

    assert len(normalized.accepted) == 1
    assert normalized.rejected == 1


def test_blank_rows_between_data_count_as_rejected(admin):
    store = FakeStore()
    data = make_csv(["Date,Case ID,Branch", ",,", "2026-01-16,C1,Nowhere"])

    result = ImportService(store=store).import_file(data, admin, "x.csv")

    assert (result.total_rows, result.accepted, result.rejected) == (2, 0, 2)
    assert result.total_rows == result.accepted + result.rejected


def test_empty_line_in_the_middle_is_a_rejected_row(admin):
    data = "Date,Case ID,Branch\n\n2026-01-16,C1,Chennai\n\n".encode("utf-8")

    result = ImportService(store=FakeStore()).import_file(data, admin, "x.csv")

    assert (result.total_rows, result.accepted, result.rejected) == (2, 1, 1)


def test_header_and_blank_row_is_a_notice(admin):
    """A blank data row still makes two rows, so this is not a structural failure."""

    store = FakeStore()

    result = ImportService(store=store).import_file(make_csv(["Date,Case ID,Branch", ",,"]), admin, "x.csv")

    assert result.message == NO_VALID_RECORDS
    assert (result.total_rows, result.rejected) == (1, 1)
    assert store.calls == []


def test_lower_case_branch_alias_keys(admin):
    rows = [["Date", "Case ID", "Branch"], ["2026-01-16", "C1", "Ch"]]
    service = ImportService(store=FakeStore(), branch_aliases={"ch": "Chennai"})

    normalized = service.normalize_rows(rows, admin)

    assert normalized.accepted[0]["branch"] == "Chennai"


def test_short_rows_and_unknown_headers(admin):
    rows = [["Date", "Whatever", "Case ID", "Branch", "Remarks"], ["2026-01-16", "x", "C1", "Chennai"]]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, admin)

    assert normalized.accepted[0]["remark"] == ""
    assert "Whatever" not in normalized.accepted[0]


def test_fewer_than_two_rows_is_structural(admin):
    store = FakeStore()
    with pytest.raises(ImportFileError):
        ImportService(store=store).import_file(make_csv(["Date,Case ID,Branch"]), admin, "x.csv")
    assert store.calls == []


def test_no_valid_records_is_a_notice_not_an_error(admin):
    store = FakeStore()
    data = make_csv(["Date,Case ID,Branch", "2026-01-16,C1,Nowhere"])

    result = ImportService(store=store).import_file(data, admin, "x.csv")

    assert result.accepted == 0
    assert result.rejected == 1
    assert result.message == NO_VALID_RECORDS
    assert store.calls == []


def test_storage_failures_reported_separately_from_rejections(admin):
    store = FakeStore(fail_first=1)
    data = make_csv([
        "Date,Case ID,Branch",
        "2026-01-16,C1,Chennai",
        "2026-01-16,C2,Chennai",
        "2026-01-16,,Chennai",
    ])

    result = ImportService(store=store).import_file(data, admin, "x.csv")

    assert result.rejected == 1
    assert result.accepted == 2
    assert result.inserted == 1
    assert result.failed == 1
    assert result.errors[0].message == "duplicate key"
    assert "1 failed" in result.message


def test_xlsx_cells_are_coerced(admin):
    store = FakeStore()
    data = make_xlsx([
        ["Date Logged", "Reference ID", "Hub", "Pending Days", "Current Status", "Brand / Model"],
        [datetime.datetime(2026, 1, 16, 9, 0), 12345, "hyd", 4, "Closed", "Acme"],
        [46038, "C-2", "Chennai", "abc", "", None],
    ])

    result = ImportService(store=store).import_file(data, admin, "cases.xlsx")

    assert result.accepted == 2
    first, second = store.calls[0]
    assert first["date"] == "2026-01-16"
    assert first["case_id"] == "12345"
    assert first["branch"] == "Hyderabad"
    assert first["aging"] == 4
    assert first["status"] == "Closed"
    assert first["brand"] == "Acme"
    assert second["date"] == "2026-01-16"
    assert second["aging"] == 0
    assert second["status"] == "Open"


@pytest.mark.parametrize("alias,field", sorted(HEADER_ALIASES.items()))
def test_each_header_alias_populates_its_field(admin, alias, field):
    base = {"date": "2026-01-16", "case_id": "C1", "branch": "Chennai"}
    headers = [h for h in ("Date", "Case ID", "Branch") if HEADER_ALIASES[h.lower()] != field]
    values = [base[HEADER_ALIASES[h.lower()]] for h in headers]
    sample = {"aging": "9", "date": "2026-02-02", "case_id": "Z9", "branch": "ROM"}.get(field, "sample text")
    rows = [headers + [f"  {alias.upper()} "], values + [sample]]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, admin)

    assert len(normalized.accepted) == 1
    expected = {"aging": 9}.get(field, sample)
    assert normalized.accepted[0][field] == expected


def test_synthetic_vocabulary(admin):
    svc = ImportService(
        store=FakeStore(),
        header_aliases={"when": "date", "ref": "case_id", "where": "branch"},
        branches=["North", "South"],
        branch_aliases={"N": "North"},
    )
    rows = [["When", "Ref", "Where"], ["2026-01-16", "1", "n"], ["2026-01-16", "2", "Chennai"]]

    normalized = svc.normalize_rows(rows, admin)

    assert [r["branch"] for r in normalized.accepted] == ["North"]
    assert normalized.rejected == 1


def test_accepted_branches_are_canonical(admin):
    rows = [["Date", "Case ID", "Branch"]] + [["2026-01-16", str(i), b] for i, b in enumerate(
        ["hyd", "up west", "RO TN", "west bengal", "bogus", "mum_thn"]
    )]

    normalized = ImportService(store=FakeStore()).normalize_rows(rows, admin)

    assert len(normalized.accepted) == 5
    assert all(r["branch"] in BRANCHES for r in normalized.accepted)
