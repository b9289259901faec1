# filters.py
from __future__ import annotations
import calendar
import datetime as _dt
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
import streamlit as st

from models import Cte, DateRange, UnitStats
from parsing import day_key, normalize_unit_name

@dataclass
class FilterState:
    date_range: DateRange   # always both bounds set
    search: str             # unit-name search (manager tables)
    unit: Optional[str]     # None = all units

# ---------- helpers ----------
def current_month_range(today: _dt.date) -> DateRange:
    last = calendar.monthrange(today.year, today.month)[1]
    return DateRange(today.replace(day=1), today.replace(day=last))

def _as_date(val: Any) -> Optional[_dt.date]:
    if val is None:
        return None
    if isinstance(val, _dt.datetime):
        return val.date()
    if isinstance(val, _dt.date):
        return val
    ts = pd.to_datetime(val, errors="coerce")
    return None if pd.isna(ts) else ts.date()

def coerce_range(val: Any, default: DateRange) -> DateRange:
    """Make sure we always return a valid (start, end) range from a date_input value."""
    if val is None:
        return default

    if isinstance(val, (_dt.date, pd.Timestamp)):
        d = _as_date(val)
        return DateRange(d, d)

    if isinstance(val, (tuple, list)):
        if len(val) == 0:
            return default
        d0 = _as_date(val[0]) or default.start
        if len(val) == 1:
            return DateRange(d0, d0)
        d1 = _as_date(val[1]) or default.end
        if d0 and d1 and d1 < d0:
            d0, d1 = d1, d0
        return DateRange(d0, d1)

    return default

def filter_units_by_search(units: List[UnitStats], text: str) -> List[UnitStats]:
    needle = (text or "").strip().upper()
    if not needle:
        return list(units)
    return [u for u in units if needle in u.unit]

def _defaults(default_range: DateRange) -> Dict[str, Any]:
    return {
        "date_range": (default_range.start, default_range.end),
        "search": "",
        "unit": "Todas",
    }

def _ensure_model(default_range: DateRange) -> None:
    if "filters_model" not in st.session_state:
        st.session_state["filters_model"] = _defaults(default_range)
    if "_pending_clear" not in st.session_state:
        st.session_state["_pending_clear"] = False

def _consume_pending_clear(default_range: DateRange) -> None:
    if st.session_state.get("_pending_clear", False):
        st.session_state["filters_model"] = _defaults(default_range)
        st.session_state["_pending_clear"] = False

# ---------- public API ----------
def sidebar_filters(default_range: DateRange, unit_names: List[str], locked_unit: Optional[str] = None) -> FilterState:
    """Period, unit and search widgets. A branch operator's unit is fixed."""
    st.sidebar.header("Filtros")

    _ensure_model(default_range)
    _consume_pending_clear(default_range)
    model: Dict[str, Any] = st.session_state["filters_model"]

    date_input_val = st.sidebar.date_input("Período (emissão)", value=model["date_range"], format="DD/MM/YYYY")

    if locked_unit:
        st.sidebar.caption(f"Unidade: **{locked_unit}**")
        unit_val = locked_unit
    else:
        options = ["Todas"] + sorted(unit_names)
        try:
            idx = options.index(model["unit"])
        except ValueError:
            idx = 0
        unit_val = st.sidebar.selectbox("Unidade", options, index=idx)

    search_val = st.sidebar.text_input("Buscar unidade...", value=model["search"])

    st.sidebar.markdown("---")
    if st.sidebar.button("Limpar filtros", use_container_width=True):
        st.session_state["_pending_clear"] = True
        st.toast("Filtros redefinidos para o mês atual")

    date_range = coerce_range(date_input_val, default_range)
    st.session_state["filters_model"] = {
        "date_range": (date_range.start, date_range.end),
        "search": search_val,
        "unit": unit_val,
    }

    return FilterState(
        date_range=date_range,
        search=search_val,
        unit=None if unit_val == "Todas" else unit_val,
    )

def apply_filters(records: Iterable[Cte], date_range: DateRange, unit: Optional[str] = None) -> List[Cte]:
    """Records issued inside the range; with a unit, only those it collected or delivers."""
    wanted = normalize_unit_name(unit) if unit else None
    out = []
    for c in records:
        if c.issue_date is None or not date_range.contains(day_key(c.issue_date)):
            continue
        if wanted and wanted not in (normalize_unit_name(c.collection_unit), normalize_unit_name(c.delivery_unit)):
            continue
        out.append(c)
    return out
