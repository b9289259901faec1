from dataclasses import asdict
from datetime import date, datetime

import pytest

from kpis import compute_for, compute_stats, deadline_window_counts
from models import AppData, Cte, DateRange, FixedDays, UnitTarget


def _unit(result, name):
    return next(u for u in result.units if u.unit == name)


def test_single_record_scenario(make_cte, targets, fixed_days):
    result = compute_stats([make_cte()], targets, fixed_days)
    a = _unit(result, "A")
    assert a.realized_revenue == 1000
    assert a.projected_revenue == pytest.approx(3000)
    assert a.projection_percent == pytest.approx(15)
    assert a.on_time_count == 1
    assert a.has_manifest_count == 1
    assert a.with_photo_count == 1
    assert (a.late_count, a.no_confirmation_count, a.no_manifest_count) == (0, 0, 0)
    assert (a.without_photo_count, a.no_confirmation_photo_count) == (0, 0)
    assert a.total_received == 1000
    assert a.revenue_on_reference_day == 1000


def test_missing_deadline_goes_to_no_confirmation_and_skips_photo(make_cte, targets, fixed_days):
    result = compute_stats([make_cte(sla_deadline=None)], targets, fixed_days)
    a = _unit(result, "A")
    assert a.no_confirmation_count == 1
    assert a.on_time_count == 0
    assert a.with_photo_count == 0 and a.without_photo_count == 0
    assert a.no_confirmation_photo_count == 1
    assert a.no_confirmation_photo_docs == a.no_confirmation_docs


def test_partitions_and_drilldown_lengths(make_cte, fixed_days):
    records = [
        make_cte(),
        make_cte(sla_status="FORA DO PRAZO", manifest_status="SEM MDFE"),
        make_cte(sla_deadline=None),
        make_cte(delivery_proof_status="BAIXADO", collection_unit="B"),
        make_cte(delivery_unit="B", sla_status="SEM DATA"),
        make_cte(collection_unit="", delivery_unit="B"),
        make_cte(collection_unit="C", delivery_unit=""),
    ]
    result = compute_stats(records, [], fixed_days)
    for u in result.units:
        delivered = [c for c in records if c.delivery_unit == u.unit]
        collected = [c for c in records if c.collection_unit == u.unit]
        assert u.on_time_count + u.late_count + u.no_confirmation_count == len(delivered)
        assert u.has_manifest_count + u.no_manifest_count == len(collected)
        assert u.with_photo_count + u.without_photo_count == len(delivered) - u.no_confirmation_count
        assert u.no_confirmation_photo_count == u.no_confirmation_count
        for counter, docs in [
            ("on_time_count", "on_time_docs"), ("late_count", "late_docs"),
            ("no_confirmation_count", "no_confirmation_docs"),
            ("has_manifest_count", "has_manifest_docs"), ("no_manifest_count", "no_manifest_docs"),
            ("with_photo_count", "with_photo_docs"), ("without_photo_count", "without_photo_docs"),
            ("no_confirmation_photo_count", "no_confirmation_photo_docs"),
        ]:
            assert len(getattr(u, docs)) == getattr(u, counter)
        assert len(u.sales_docs) == len(collected)


def test_revenue_is_conserved(make_cte, fixed_days):
    records = [
        make_cte(value=10.5),
        make_cte(collection_unit="B", value=20.25),
        make_cte(collection_unit="", delivery_unit="B", value=99.0),
        make_cte(collection_unit="C", delivery_unit="", value=5.0),
    ]
    result = compute_stats(records, [UnitTarget("A", 100)], fixed_days)
    expected = sum(c.value for c in records if c.collection_unit)
    assert sum(u.realized_revenue for u in result.units) == pytest.approx(expected)
    assert result.summary.realized_revenue == pytest.approx(expected)


def test_collection_and_delivery_sides_update_different_units(make_cte, fixed_days):
    result = compute_stats([make_cte(collection_unit="A", delivery_unit="B", value=300)], [], fixed_days)
    a, b = _unit(result, "A"), _unit(result, "B")
    assert (a.realized_revenue, a.total_received) == (300, 0)
    assert (b.realized_revenue, b.total_received) == (0, 300)
    assert a.has_manifest_count == 1 and a.on_time_count == 0
    assert b.on_time_count == 1 and b.has_manifest_count == 0
    assert result.summary.total_document_count == 1


def test_summary_equals_sum_of_units(make_cte, fixed_days):
    records = [
        make_cte(),
        make_cte(collection_unit="B", delivery_unit="C", sla_status="FORA DO PRAZO"),
        make_cte(collection_unit="", delivery_unit="C", delivery_proof_status="SEM BAIXA"),
        make_cte(manifest_status="", delivery_proof_status="BAIXADO"),
    ]
    result = compute_stats(records, [UnitTarget("A", 5000), UnitTarget("Z", 1000)], fixed_days)
    s = result.summary
    for field in [
        "realized_revenue", "total_received", "target_revenue", "projected_revenue",
        "on_time_count", "late_count", "no_confirmation_count", "has_manifest_count",
        "no_manifest_count", "with_photo_count", "without_photo_count", "no_confirmation_photo_count",
    ]:
        assert getattr(s, field) == pytest.approx(sum(getattr(u, field) for u in result.units)), field
    assert s.total_document_count == 4


def test_compute_is_deterministic(make_cte, targets, fixed_days):
    records = [make_cte(), make_cte(collection_unit="B", issue_date=datetime(2024, 3, 11, 12))]
    first = compute_stats(records, targets, fixed_days)
    second = compute_stats(records, targets, fixed_days)
    assert asdict(first.summary) == asdict(second.summary)
    assert [asdict(u) for u in first.units] == [asdict(u) for u in second.units]


def test_units_without_target_report_zero_percent(make_cte, fixed_days):
    result = compute_stats([make_cte(collection_unit="NOVA", value=50000)], [], fixed_days)
    nova = _unit(result, "NOVA")
    assert nova.target_revenue == 0
    assert nova.projected_revenue > 0
    assert nova.projection_percent == 0


def test_target_only_unit_has_all_zero_counters(make_cte, fixed_days):
    result = compute_stats([make_cte()], [UnitTarget("A", 1000), UnitTarget("VAZIA", 5000)], fixed_days)
    vazia = _unit(result, "VAZIA")
    assert vazia.realized_revenue == 0
    assert vazia.projection_percent == 0
    assert vazia.delivery_total == 0 and vazia.manifest_total == 0
    assert vazia.on_time_percent == 0


def test_units_keep_target_order_then_first_seen(make_cte, fixed_days):
    records = [make_cte(collection_unit="Y", delivery_unit="X")]
    result = compute_stats(records, [UnitTarget("B", 1), UnitTarget("A", 1)], fixed_days)
    assert [u.unit for u in result.units] == ["B", "A", "Y", "X"]


@pytest.mark.parametrize("days", [FixedDays(0, 0), FixedDays(-3, 0)])
def test_day_counts_clamp_to_one(make_cte, days):
    result = compute_stats([make_cte(value=700)], [UnitTarget("A", 1400)], days)
    a = _unit(result, "A")
    assert a.projected_revenue == pytest.approx(700)
    assert a.projection_percent == pytest.approx(50)


def test_date_range_bounds_are_inclusive(make_cte, fixed_days):
    records = [
        make_cte(issue_date=datetime(2024, 3, 1, 12), value=1),
        make_cte(issue_date=datetime(2024, 3, 15, 12), value=10),
        make_cte(issue_date=datetime(2024, 3, 31, 12), value=100),
        make_cte(issue_date=datetime(2024, 4, 1, 12), value=1000),
        make_cte(issue_date=datetime(2024, 2, 29, 12), value=10000),
    ]
    result = compute_stats(records, [], fixed_days, DateRange(date(2024, 3, 1), date(2024, 3, 31)))
    assert result.summary.realized_revenue == 111
    assert result.summary.total_document_count == 3


def test_single_bound_date_range(make_cte, fixed_days):
    records = [make_cte(issue_date=datetime(2024, 3, d, 12), value=d) for d in (1, 10, 20)]
    result = compute_stats(records, [], fixed_days, DateRange(start=date(2024, 3, 10)))
    assert result.summary.realized_revenue == 30


def test_reference_day_is_last_issue_day_in_range(make_cte, fixed_days):
    records = [
        make_cte(issue_date=datetime(2024, 3, 9, 12), value=1),
        make_cte(issue_date=datetime(2024, 3, 10, 12), value=10),
        make_cte(issue_date=datetime(2024, 3, 10, 12), collection_unit="B", value=20),
        make_cte(issue_date=datetime(2024, 4, 2, 12), value=100),
    ]
    result = compute_stats(
        records, [], fixed_days, DateRange(date(2024, 3, 1), date(2024, 3, 31)),
        last_update=datetime(2024, 4, 2, 12),
    )
    assert result.summary.reference_date == date(2024, 3, 10)
    assert _unit(result, "A").revenue_on_reference_day == 10
    assert _unit(result, "B").revenue_on_reference_day == 20
    assert result.summary.revenue_on_reference_day == 30


def test_reference_day_falls_back_to_last_update_when_range_is_empty(make_cte, fixed_days):
    result = compute_stats(
        [make_cte()], [], fixed_days, DateRange(date(2023, 1, 1), date(2023, 1, 31)),
        last_update=datetime(2024, 3, 10, 12),
    )
    assert result.summary.reference_date == date(2024, 3, 10)
    assert result.summary.total_document_count == 0


def test_unit_filter_restricts_units_but_not_summary(make_cte, fixed_days):
    records = [make_cte(), make_cte(collection_unit="B", delivery_unit="B", value=500)]
    result = compute_stats(records, [], fixed_days, unit_filter=" b ")
    assert [u.unit for u in result.units] == ["B"]
    assert result.summary.realized_revenue == 1500
    assert compute_stats(records, [], fixed_days, unit_filter="NOPE").units == []


def test_records_without_date_or_units_are_ignored(make_cte, fixed_days):
    records = [
        make_cte(issue_date=None),
        make_cte(collection_unit="", delivery_unit=""),
        make_cte(collection_unit="  ", delivery_unit=""),
        make_cte(),
    ]
    result = compute_stats(records, [], fixed_days)
    assert result.summary.total_document_count == 1
    assert [u.unit for u in result.units] == ["A"]
    assert _unit(result, "A").sales_docs == [records[3]]


def test_empty_input_degrades_to_zero(fixed_days):
    result = compute_stats([], [], fixed_days)
    assert result.units == []
    assert result.summary.total_document_count == 0
    assert result.summary.projection_percent == 0
    assert result.summary.reference_date is None


def test_summary_targets_and_daily_target(make_cte):
    result = compute_stats(
        [make_cte(value=4000)], [UnitTarget("A", 10000), UnitTarget("B", 10000)], FixedDays(total=20, elapsed=10)
    )
    s = result.summary
    assert s.target_revenue == 20000
    assert s.projected_revenue == pytest.approx(8000)
    assert s.projection_percent == pytest.approx(40)
    assert s.realized_percent == pytest.approx(20)
    assert s.daily_target_remaining == pytest.approx(1600)


def test_compute_for_uses_app_data(make_cte, targets, fixed_days):
    data = AppData(
        ctes=[make_cte()], targets=targets, fixed_days=fixed_days,
        ref_date=None, holidays=[], last_update=datetime(2024, 3, 10, 12),
    )
    result = compute_for(data, unit_filter="A")
    assert result.units[0].projection_percent == pytest.approx(15)


def test_deadline_window_counts(make_cte):
    records = [
        make_cte(sla_deadline=datetime(2024, 3, 5, 12)),
        make_cte(sla_deadline=datetime(2024, 3, 6, 12), sla_status="FORA DO PRAZO"),
        make_cte(sla_deadline=datetime(2024, 3, 7, 12), delivery_proof_status="SEM BAIXA"),
        make_cte(sla_deadline=datetime(2024, 3, 20, 12)),
        make_cte(sla_deadline=None),
    ]
    counts = deadline_window_counts(records, date(2024, 3, 5), date(2024, 3, 7))
    assert counts["total"] == 3
    assert (counts["on_time"], counts["late"], counts["no_confirmation"]) == (1, 1, 1)
    assert counts["on_time_pct"] == pytest.approx(100 / 3)
    assert deadline_window_counts(records)["total"] == 4
    assert deadline_window_counts([], None, None)["on_time_pct"] == 0
