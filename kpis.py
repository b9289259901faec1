from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

import streamlit as st

from constants import (
    HAS_MANIFEST, KPI_FORMATS, LATE, NO_CONFIRMATION, NO_MANIFEST, ON_TIME, WITH_PHOTO,
    WITHOUT_PHOTO,
)
from features import classify_manifest, classify_photo, classify_sla
from models import (
    AppData, Cte, DashboardStats, DateRange, FixedDays, GlobalSummary, UnitStats, UnitTarget,
)
from parsing import br_date, br_money, br_percent, day_key, normalize_unit_name

logger = logging.getLogger(__name__)

_SLA_SLOTS = {
    ON_TIME: ("on_time_count", "on_time_docs"),
    LATE: ("late_count", "late_docs"),
    NO_CONFIRMATION: ("no_confirmation_count", "no_confirmation_docs"),
}
_MANIFEST_SLOTS = {
    HAS_MANIFEST: ("has_manifest_count", "has_manifest_docs"),
    NO_MANIFEST: ("no_manifest_count", "no_manifest_docs"),
}
_PHOTO_SLOTS = {
    WITH_PHOTO: ("with_photo_count", "with_photo_docs"),
    WITHOUT_PHOTO: ("without_photo_count", "without_photo_docs"),
    NO_CONFIRMATION: ("no_confirmation_photo_count", "no_confirmation_photo_docs"),
}

def _in_range(cte: Cte, date_range: Optional[DateRange]) -> bool:
    if cte.issue_date is None:
        return False
    return date_range is None or date_range.contains(day_key(cte.issue_date))

def _reference_day(ctes: List[Cte], last_update: Optional[datetime | date]) -> Optional[date]:
    days = [day_key(c.issue_date) for c in ctes]
    if days:
        return max(days)
    return day_key(last_update)

def _tally(unit: UnitStats, summary: GlobalSummary, slots: tuple[str, str], cte: Cte) -> None:
    counter, docs = slots
    setattr(unit, counter, getattr(unit, counter) + 1)
    getattr(unit, docs).append(cte)
    setattr(summary, counter, getattr(summary, counter) + 1)

def _project(realized: float, target: float, fixed_days: FixedDays) -> tuple[float, float]:
    elapsed = max(1, fixed_days.elapsed)
    total = max(1, fixed_days.total)
    projected = realized / elapsed * total
    percent = projected / target * 100 if target > 0 else 0.0
    return projected, percent

def compute_stats(
    records: Iterable[Cte],
    targets: Iterable[UnitTarget],
    fixed_days: FixedDays,
    date_range: Optional[DateRange] = None,
    unit_filter: Optional[str] = None,
    last_update: Optional[datetime | date] = None,
) -> DashboardStats:
    """
    Aggregate shipment records into one global summary and one row per unit.

    - Units come from `targets` first (so zero-shipment units still show), then
      from collection/delivery units in the order they are first seen.
    - Only records whose issue day is inside `date_range` (inclusive) count.
    - A record feeds the collection side of its collection unit (revenue,
      manifest) and the delivery side of its delivery unit (received value,
      SLA, photo); each bucket is classified once per record and the same
      result feeds both the unit row and the summary.
    - The reference day for "revenue on the day" is the latest issue day in
      the filtered set, or `last_update` when the set is empty.
    - `unit_filter` restricts the returned units; the summary stays global.
    """
    units: Dict[str, UnitStats] = {}
    for t in targets:
        name = normalize_unit_name(t.unit_name)
        if not name:
            continue
        if name in units:
            units[name].target_revenue = t.target_revenue
        else:
            units[name] = UnitStats(unit=name, target_revenue=t.target_revenue)

    def _unit(name: str) -> UnitStats:
        if name not in units:
            units[name] = UnitStats(unit=name)
        return units[name]

    ctes = [
        c for c in records
        if _in_range(c, date_range)
        and (normalize_unit_name(c.collection_unit) or normalize_unit_name(c.delivery_unit))
    ]
    reference_day = _reference_day(ctes, last_update)
    summary = GlobalSummary(total_document_count=len(ctes), reference_date=reference_day)

    for cte in ctes:
        sla_bucket = classify_sla(cte)
        manifest_bucket = classify_manifest(cte)
        photo_bucket = classify_photo(cte, sla_bucket)
        on_reference_day = day_key(cte.issue_date) == reference_day

        collection = normalize_unit_name(cte.collection_unit)
        if collection:
            stats = _unit(collection)
            stats.realized_revenue += cte.value
            stats.sales_docs.append(cte)
            summary.realized_revenue += cte.value
            if on_reference_day:
                stats.revenue_on_reference_day += cte.value
                summary.revenue_on_reference_day += cte.value
            _tally(stats, summary, _MANIFEST_SLOTS[manifest_bucket], cte)

        delivery = normalize_unit_name(cte.delivery_unit)
        if delivery:
            stats = _unit(delivery)
            stats.total_received += cte.value
            summary.total_received += cte.value
            _tally(stats, summary, _SLA_SLOTS[sla_bucket], cte)
            _tally(stats, summary, _PHOTO_SLOTS[photo_bucket], cte)

    for stats in units.values():
        stats.projected_revenue, stats.projection_percent = _project(
            stats.realized_revenue, stats.target_revenue, fixed_days
        )
        summary.target_revenue += stats.target_revenue
        summary.projected_revenue += stats.projected_revenue

    summary.projection_percent = (
        summary.projected_revenue / summary.target_revenue * 100 if summary.target_revenue > 0 else 0.0
    )
    remaining_days = max(1, fixed_days.total - fixed_days.elapsed)
    summary.daily_target_remaining = max(0.0, summary.target_revenue - summary.realized_revenue) / remaining_days

    result = list(units.values())
    if unit_filter:
        wanted = normalize_unit_name(unit_filter)
        result = [u for u in result if u.unit == wanted]

    logger.debug(
        "compute_stats: %d docs, %d units, reference day %s, range %s, unit %s",
        summary.total_document_count, len(result), reference_day, date_range, unit_filter or "-",
    )
    return DashboardStats(summary=summary, units=result)

def compute_for(
    data: AppData,
    date_range: Optional[DateRange] = None,
    unit_filter: Optional[str] = None,
) -> DashboardStats:
    return compute_stats(
        data.ctes, data.targets, data.fixed_days,
        date_range=date_range, unit_filter=unit_filter, last_update=data.last_update,
    )

def deadline_window_counts(
    records: Iterable[Cte],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Dict[str, float]:
    """SLA buckets for records whose delivery deadline falls in [start, end]; records with no deadline are skipped."""
    window = DateRange(start, end)
    counts = {ON_TIME: 0, LATE: 0, NO_CONFIRMATION: 0}
    for cte in records:
        if cte.sla_deadline is None or not window.contains(day_key(cte.sla_deadline)):
            continue
        counts[classify_sla(cte)] += 1
    total = sum(counts.values())

    def pct(n: int) -> float:
        return n / total * 100.0 if total else 0.0

    return dict(
        total=total,
        on_time=counts[ON_TIME],
        late=counts[LATE],
        no_confirmation=counts[NO_CONFIRMATION],
        on_time_pct=pct(counts[ON_TIME]),
        late_pct=pct(counts[LATE]),
        no_confirmation_pct=pct(counts[NO_CONFIRMATION]),
    )

def render_kpis(summary: GlobalSummary, fixed_days: FixedDays) -> None:
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Vendas no período", br_money(summary.realized_revenue),
              f"{br_percent(summary.realized_percent)} da meta")
    c2.metric("Projeção", br_money(summary.projected_revenue),
              f"{br_percent(summary.projection_percent)} da meta")
    c3.metric(f"Vendas em {br_date(summary.reference_date)}", br_money(summary.revenue_on_reference_day))
    c4.metric("Meta do dia", br_money(summary.daily_target_remaining),
              f"{fixed_days.elapsed}/{fixed_days.total} dias úteis", delta_color="off")
    c5.metric("CT-es", KPI_FORMATS["total_documents"].format(summary.total_document_count).replace(",", "."))

    _render_status_row(summary)

def render_unit_kpis(stats: UnitStats, reference_date: Optional[date]) -> None:
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Vendas no período", br_money(stats.realized_revenue),
              f"{br_percent(stats.realized_percent)} da meta")
    c2.metric("Projeção", br_money(stats.projected_revenue),
              f"{br_percent(stats.projection_percent)} da meta {br_money(stats.target_revenue)}")
    c3.metric(f"Vendas em {br_date(reference_date)}", br_money(stats.revenue_on_reference_day))
    c4.metric("Recebido (entregas)", br_money(stats.total_received))
    _render_status_row(stats)

def _render_status_row(counters: UnitStats | GlobalSummary) -> None:
    d1, d2, d3, d4, d5 = st.columns(5)
    d1.metric("Baixa no prazo", KPI_FORMATS["percent"].format(counters.on_time_percent),
              f"{counters.on_time_count} CT-es", delta_color="off")
    d2.metric("Baixa fora do prazo", KPI_FORMATS["percent"].format(counters.late_percent),
              f"{counters.late_count} CT-es", delta_color="off")
    d3.metric("Sem baixa", KPI_FORMATS["percent"].format(counters.no_confirmation_percent),
              f"{counters.no_confirmation_count} CT-es", delta_color="off")
    d4.metric("Baixas com foto", KPI_FORMATS["percent"].format(counters.with_photo_percent),
              f"{counters.without_photo_count} sem foto", delta_color="inverse")
    d5.metric("Com MDF-e", KPI_FORMATS["percent"].format(counters.has_manifest_percent),
              f"{counters.no_manifest_count} sem MDF-e", delta_color="inverse")
