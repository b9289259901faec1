from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

def _pct(part: float, total: float) -> float:
    return (part / total) * 100.0 if total > 0 else 0.0

@dataclass(frozen=True)
class Cte:
    id: str
    issue_date: Optional[datetime]
    sla_deadline: Optional[datetime] = None
    sla_status: str = ""
    collection_unit: str = ""
    delivery_unit: str = ""
    manifest_status: str = ""
    delivery_proof_status: str = ""
    value: float = 0.0
    sender: str = ""
    recipient: str = ""

@dataclass(frozen=True)
class UnitTarget:
    unit_name: str
    target_revenue: float

@dataclass(frozen=True)
class FixedDays:
    total: int      # days in the period, from the calendar feed header
    elapsed: int    # days already worked

@dataclass
class AppData:
    ctes: List[Cte]
    targets: List[UnitTarget]
    fixed_days: FixedDays
    ref_date: Optional[datetime]
    holidays: List[datetime]
    last_update: datetime

@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True

@dataclass
class _Counters:
    realized_revenue: float = 0.0
    target_revenue: float = 0.0
    projected_revenue: float = 0.0
    projection_percent: float = 0.0
    revenue_on_reference_day: float = 0.0
    total_received: float = 0.0

    on_time_count: int = 0
    late_count: int = 0
    no_confirmation_count: int = 0
    has_manifest_count: int = 0
    no_manifest_count: int = 0
    with_photo_count: int = 0
    without_photo_count: int = 0
    no_confirmation_photo_count: int = 0

    @property
    def delivery_total(self) -> int:
        return self.on_time_count + self.late_count + self.no_confirmation_count

    @property
    def manifest_total(self) -> int:
        return self.has_manifest_count + self.no_manifest_count

    @property
    def photo_total(self) -> int:
        return self.with_photo_count + self.without_photo_count

    @property
    def on_time_percent(self) -> float:
        return _pct(self.on_time_count, self.delivery_total)

    @property
    def late_percent(self) -> float:
        return _pct(self.late_count, self.delivery_total)

    @property
    def no_confirmation_percent(self) -> float:
        return _pct(self.no_confirmation_count, self.delivery_total)

    @property
    def has_manifest_percent(self) -> float:
        return _pct(self.has_manifest_count, self.manifest_total)

    @property
    def no_manifest_percent(self) -> float:
        return _pct(self.no_manifest_count, self.manifest_total)

    @property
    def with_photo_percent(self) -> float:
        return _pct(self.with_photo_count, self.photo_total)

    @property
    def realized_percent(self) -> float:
        return _pct(self.realized_revenue, self.target_revenue)

@dataclass
class UnitStats(_Counters):
    unit: str = ""

    # drill-down lists, one per counter above
    sales_docs: List[Cte] = field(default_factory=list)
    on_time_docs: List[Cte] = field(default_factory=list)
    late_docs: List[Cte] = field(default_factory=list)
    no_confirmation_docs: List[Cte] = field(default_factory=list)
    has_manifest_docs: List[Cte] = field(default_factory=list)
    no_manifest_docs: List[Cte] = field(default_factory=list)
    with_photo_docs: List[Cte] = field(default_factory=list)
    without_photo_docs: List[Cte] = field(default_factory=list)
    no_confirmation_photo_docs: List[Cte] = field(default_factory=list)

@dataclass
class GlobalSummary(_Counters):
    total_document_count: int = 0
    reference_date: Optional[date] = None
    daily_target_remaining: float = 0.0

@dataclass
class DashboardStats:
    summary: GlobalSummary
    units: List[UnitStats]
