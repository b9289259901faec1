# app.py
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

import streamlit as st

from app_secrets import get_secret
from auth import User, authenticate, current_user, sign_in, sign_out
from charts import render_charts
from constants import APP_TITLE
from data_io import FeedError, cached_app_data, load_users
from filters import apply_filters, current_month_range, filter_units_by_search, sidebar_filters
from kpis import compute_for, deadline_window_counts, render_kpis, render_unit_kpis
from models import AppData, DateRange, UnitStats
from tables import (
    DELIVERY_SORT, DRILLDOWN_BUCKETS, MANIFEST_SORT, SALES_SORT,
    delivery_ranking, download_filtered, drilldown_table, manifest_ranking, ranking_table,
    sales_ranking,
)
from ui import data_caption, footer_description, header, load_error, login_form

logger = logging.getLogger(__name__)

def _configure_logging() -> None:
    logging.basicConfig(
        level=(get_secret("LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def _retry_load() -> None:
    st.cache_data.clear()

def _login() -> None:
    creds = login_form(st.session_state.get("_login_error", ""))
    if not creds:
        st.stop()
    username, password = creds
    try:
        result = authenticate(load_users(), username, password)
    except FeedError as e:
        logger.warning("Login feed unavailable: %s", e)
        st.session_state["_login_error"] = "Erro ao autenticar. Tente novamente."
        st.rerun()
    if result.user is None:
        st.session_state["_login_error"] = result.error
        st.rerun()
    st.session_state.pop("_login_error", None)
    sign_in(result.user)
    st.rerun()

def _sort_controls(key: str, fields: dict, default: str) -> tuple[str, bool]:
    c1, c2 = st.columns([3, 1])
    options = list(fields)
    field = c1.selectbox("Ordenar por", options, index=options.index(default),
                         format_func=lambda f: fields[f], key=f"sort_{key}")
    ascending = c2.toggle("Crescente", value=False, key=f"asc_{key}")
    return field, ascending

def _drilldown(stats: UnitStats, key: str) -> None:
    bucket = st.selectbox(
        "Documentos", list(DRILLDOWN_BUCKETS),
        format_func=lambda b: DRILLDOWN_BUCKETS[b][0], key=f"bucket_{key}",
    )
    drilldown_table(stats, bucket)

def _manager_view(data: AppData, date_range: DateRange, search: str) -> None:
    stats = compute_for(data, date_range)
    render_kpis(stats.summary, data.fixed_days)
    units = filter_units_by_search(stats.units, search)

    st.divider()
    sales_tab, delivery_tab, manifest_tab, deadline_tab, docs_tab = st.tabs(
        ["Ranking de vendas", "Ranking de pendências", "Ranking de MDF-e", "Prazo de baixa", "Documentos"]
    )
    with sales_tab:
        field, asc = _sort_controls("sales", SALES_SORT, "faturamento")
        sales = sales_ranking(units, field, asc)
        ranking_table(sales, "ranking_vendas")
    with delivery_tab:
        field, asc = _sort_controls("delivery", DELIVERY_SORT, "pct_no_prazo")
        ranking_table(delivery_ranking(units, field, asc), "ranking_pendencias")
    with manifest_tab:
        field, asc = _sort_controls("manifest", MANIFEST_SORT, "pct_com_mdfe")
        ranking_table(manifest_ranking(units, field, asc), "ranking_mdfe")
    with deadline_tab:
        _deadline_panel(data)
    with docs_tab:
        if not units:
            st.info("Nenhuma unidade encontrada.")
        else:
            chosen = st.selectbox("Unidade", [u.unit for u in units], key="docs_unit")
            _drilldown(next(u for u in units if u.unit == chosen), "manager")
        st.divider()
        st.markdown("**Base filtrada**")
        download_filtered(apply_filters(data.ctes, date_range))

    st.divider()
    render_charts(data.ctes, sales_ranking(units, "percentual_projecao"), None, date_range)

def _deadline_panel(data: AppData) -> None:
    c1, c2 = st.columns(2)
    start: Optional[date] = c1.date_input("Prazo de baixa de", value=None, format="DD/MM/YYYY", key="deadline_start")
    end: Optional[date] = c2.date_input("até", value=None, format="DD/MM/YYYY", key="deadline_end")
    counts = deadline_window_counts(data.ctes, start, end)
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("CT-es com prazo", counts["total"])
    m2.metric("No prazo", f"{counts['on_time_pct']:.0f}%", f"{counts['on_time']}", delta_color="off")
    m3.metric("Sem baixa", f"{counts['no_confirmation_pct']:.0f}%", f"{counts['no_confirmation']}", delta_color="off")
    m4.metric("Fora do prazo", f"{counts['late_pct']:.0f}%", f"{counts['late']}", delta_color="off")

def _unit_view(data: AppData, date_range: DateRange, unit: str) -> None:
    stats = compute_for(data, date_range, unit)
    unit_stats = stats.units[0] if stats.units else UnitStats(unit=unit)
    st.subheader(f"Unidade {unit_stats.unit}")
    render_unit_kpis(unit_stats, stats.summary.reference_date)
    st.divider()
    _drilldown(unit_stats, "unit")
    with st.expander("Base filtrada da unidade"):
        download_filtered(apply_filters(data.ctes, date_range, unit_stats.unit), "base_unidade")
    st.divider()
    render_charts(data.ctes, sales_ranking([unit_stats]), unit_stats.unit, date_range)

def main() -> None:
    _configure_logging()
    user: Optional[User] = current_user()
    header(APP_TITLE, user, sign_out)

    if user is None:
        _login()
        return

    try:
        data = cached_app_data()
    except FeedError as e:
        logger.error("Data load failed: %s", e)
        load_error("Falha ao carregar dados operacionais.", _retry_load)
        return

    data_caption(data.last_update, data.ref_date, data.fixed_days.elapsed, data.fixed_days.total)
    if st.sidebar.button("Atualizar dados", use_container_width=True):
        st.cache_data.clear()
        st.rerun()

    all_units = [u.unit for u in compute_for(data).units]
    filters = sidebar_filters(current_month_range(date.today()), all_units, locked_unit=user.unit or None)

    st.divider()
    unit = user.unit or filters.unit
    if unit:
        _unit_view(data, filters.date_range, unit)
    else:
        _manager_view(data, filters.date_range, filters.search)

    st.divider()
    footer_description()


if __name__ == "__main__":
    main()
