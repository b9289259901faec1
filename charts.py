from __future__ import annotations
from typing import Iterable, Optional

import altair as alt
import pandas as pd
import streamlit as st

from constants import COLORS
from models import Cte, DateRange
from parsing import day_key, normalize_unit_name

_BAND_COLORS = {"above": "#22c55e", "average": COLORS["warning"], "below": "#ef4444"}

def daily_revenue(
    records: Iterable[Cte],
    unit: Optional[str] = None,
    date_range: Optional[DateRange] = None,
) -> pd.DataFrame:
    """
    Collection-side revenue per issue day.
    Days with no revenue are dropped; each day is banded against the mean of
    the remaining days: 'above' (> 105%), 'below' (< 95%) or 'average'.
    """
    target = normalize_unit_name(unit) if unit else None
    rows = []
    for c in records:
        if c.issue_date is None:
            continue
        collection = normalize_unit_name(c.collection_unit)
        if not collection or (target and collection != target):
            continue
        day = day_key(c.issue_date)
        if date_range is not None and not date_range.contains(day):
            continue
        rows.append((day, c.value))

    cols = ["date", "value", "count", "band"]
    if not rows:
        return pd.DataFrame(columns=cols)

    df = pd.DataFrame(rows, columns=["date", "value"])
    out = df.groupby("date", as_index=False).agg(value=("value", "sum"), count=("value", "size"))
    out = out[out["value"] > 0].sort_values("date").reset_index(drop=True)
    if out.empty:
        return pd.DataFrame(columns=cols)

    avg = out["value"].mean()
    out["band"] = "average"
    out.loc[out["value"] > avg * 1.05, "band"] = "above"
    out.loc[out["value"] < avg * 0.95, "band"] = "below"
    return out[cols]

def daily_revenue_chart(data: pd.DataFrame) -> alt.LayerChart:
    data = data.assign(date=pd.to_datetime(data["date"]))
    base = alt.Chart(data).encode(x=alt.X("date:T", title="Dia", axis=alt.Axis(format="%d/%m")))
    area = base.mark_area(opacity=0.15, color=COLORS["primary"]).encode(y=alt.Y("value:Q", title="Vendas (R$)"))
    line = base.mark_line(color=COLORS["primary"]).encode(y="value:Q")
    points = base.mark_circle(size=70).encode(
        y="value:Q",
        color=alt.Color(
            "band:N",
            scale=alt.Scale(domain=list(_BAND_COLORS), range=list(_BAND_COLORS.values())),
            legend=alt.Legend(title="Vs. média"),
        ),
        tooltip=[
            alt.Tooltip("date:T", title="Dia", format="%d/%m/%Y"),
            alt.Tooltip("value:Q", title="Vendas", format=",.2f"),
            alt.Tooltip("count:Q", title="CT-es"),
        ],
    )
    avg = alt.Chart(pd.DataFrame({"avg": [data["value"].mean()]})).mark_rule(
        strokeDash=[4, 4], color=COLORS["neutral"]
    ).encode(y="avg:Q")
    return alt.layer(area, line, points, avg)

def ranking_chart(df: pd.DataFrame, metric: str, title: str) -> alt.Chart:
    data = df[["Unidade", metric]].rename(columns={"Unidade": "unit", metric: "metric"}).head(15)
    return (
        alt.Chart(data)
        .mark_bar(color=COLORS["primary"])
        .encode(
            x=alt.X("metric:Q", title=title),
            y=alt.Y("unit:N", sort="-x", title="Unidade"),
            tooltip=[alt.Tooltip("unit:N", title="Unidade"), alt.Tooltip("metric:Q", title=title, format=",.1f")],
        )
    )

def render_charts(records: Iterable[Cte], sales: pd.DataFrame, unit: Optional[str], date_range: DateRange) -> None:
    st.subheader("Evolução diária de vendas")
    daily = daily_revenue(records, unit, date_range)
    if daily.empty:
        st.info("Sem vendas no período selecionado.")
    else:
        st.altair_chart(daily_revenue_chart(daily), use_container_width=True)

    if unit is None and not sales.empty:
        st.subheader("% da meta projetada por unidade")
        st.altair_chart(ranking_chart(sales, "% Projeção", "% Projeção"), use_container_width=True)
