from __future__ import annotations

from regionfix.domain import (
    AuditReport,
    ReconciliationReport,
    RegionReference,
    TableOutcome,
    TableStatus,
)


def _outcome(
    table: str, status: TableStatus, rows: int = 0, error: str | None = None
) -> TableOutcome:
    return TableOutcome(
        reference=RegionReference(table=table), status=status, rows=rows, error=error
    )


def _report() -> ReconciliationReport:
    report = ReconciliationReport(replacement_id="reg_valid_usd", dangling_ids=("reg_old",))
    report.record(_outcome("cart", TableStatus.UPDATED, rows=5))
    report.record(_outcome("customer", TableStatus.UPDATED))
    report.record(_outcome("gift_card", TableStatus.TABLE_NOT_FOUND))
    report.record(_outcome("discount", TableStatus.ERROR, error="check constraint failed"))
    return report


def test_report_aggregates_rows_and_skips() -> None:
    report = _report()

    assert report.total_rows_updated == 5
    assert report.rows_by_table == {"cart": 5, "customer": 0}
    assert [outcome.table for outcome in report.skipped] == ["gift_card", "discount"]
    assert [outcome.table for outcome in report.failures] == ["discount"]
    outcome = report.outcome_for("gift_card")
    assert outcome is not None
    assert outcome.status is TableStatus.TABLE_NOT_FOUND


def test_report_summary_lines_describe_every_table() -> None:
    lines = _report().summary_lines()

    assert "Replacement region: reg_valid_usd" in lines
    assert "  cart: 5 updated" in lines
    assert "  customer: 0 updated" in lines
    assert "  gift_card: skipped (table not found)" in lines
    assert "  discount: skipped (error processing: check constraint failed)" in lines
    assert "Total rows updated: 5" in lines
    assert lines[-1] == "Tables with errors: 1"


def test_dry_run_summary_uses_conditional_wording() -> None:
    report = ReconciliationReport(replacement_id="reg_x", dangling_ids=(), dry_run=True)
    report.record(_outcome("cart", TableStatus.UPDATED, rows=2))

    lines = report.summary_lines()

    assert lines[0] == "Dry run: no rows modified"
    assert "Dangling region ids: (none)" in lines
    assert "  cart: 2 would be updated" in lines


def test_audit_report_is_clean_only_without_dangling_rows() -> None:
    audit = AuditReport()
    audit.record(_outcome("cart", TableStatus.UPDATED, rows=0))
    audit.record(_outcome("gift_card", TableStatus.TABLE_NOT_FOUND))
    assert audit.is_clean

    audit.record(_outcome("customer", TableStatus.UPDATED, rows=3))
    assert not audit.is_clean
    assert audit.total_dangling == 3
    assert "  customer: 3 dangling" in audit.summary_lines()


def test_audit_report_with_unreadable_table_is_not_clean() -> None:
    audit = AuditReport()
    audit.record(_outcome("cart", TableStatus.UPDATED, rows=0))
    audit.record(_outcome("order", TableStatus.ERROR, error="permission denied"))

    assert audit.total_dangling == 0
    assert [outcome.table for outcome in audit.failures] == ["order"]
    assert not audit.is_clean
    lines = audit.summary_lines()
    assert "  order: skipped (error processing: permission denied)" in lines
    assert "Tables with errors: 1" in lines
