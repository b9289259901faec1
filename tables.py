from __future__ import annotations
from typing import Iterable, List

import pandas as pd
import streamlit as st

from constants import EXPORT_COLUMNS
from features import derive_features, frame_from_records
from models import Cte, UnitStats
from parsing import br_date, br_money

DRILLDOWN_BUCKETS = {
    "vendas": ("Vendas", "sales_docs"),
    "no_prazo": ("Baixa no prazo", "on_time_docs"),
    "fora_prazo": ("Baixa fora do prazo", "late_docs"),
    "sem_baixa": ("Sem baixa", "no_confirmation_docs"),
    "com_mdfe": ("Com MDF-e", "has_manifest_docs"),
    "sem_mdfe": ("Sem MDF-e", "no_manifest_docs"),
    "com_foto": ("Com foto", "with_photo_docs"),
    "sem_foto": ("Sem foto", "without_photo_docs"),
    "aguardando_baixa": ("Foto aguardando baixa", "no_confirmation_photo_docs"),
}

SALES_SORT = {
    "unidade": "Unidade",
    "faturamento": "Vendas",
    "projecao": "Projeção",
    "percentual_projecao": "% Projeção",
}
DELIVERY_SORT = {
    "unidade": "Unidade",
    "total_recebimentos": "Total",
    "pct_no_prazo": "% No prazo",
    "pct_sem_baixa": "% Sem baixa",
    "pct_fora_prazo": "% Fora do prazo",
    "pct_com_foto": "% Com foto",
}
MANIFEST_SORT = {
    "unidade": "Unidade",
    "total_emissoes": "Emissões",
    "pct_com_mdfe": "% Com MDF-e",
    "pct_sem_mdfe": "% Sem MDF-e",
}

def records_frame(records: Iterable[Cte]) -> pd.DataFrame:
    rows = [
        [c.id, br_date(c.issue_date), c.collection_unit, c.delivery_unit, c.value,
         c.sla_status, c.manifest_status, c.sender, c.recipient]
        for c in records
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)

def _sorted(df: pd.DataFrame, fields: dict, field: str, ascending: bool) -> pd.DataFrame:
    col = fields.get(field, "Unidade")
    return df.sort_values(col, ascending=ascending, kind="mergesort").reset_index(drop=True)

def sales_ranking(units: List[UnitStats], field: str = "faturamento", ascending: bool = False) -> pd.DataFrame:
    df = pd.DataFrame(
        [[u.unit, u.realized_revenue, u.target_revenue, u.projected_revenue, u.projection_percent,
          u.revenue_on_reference_day] for u in units],
        columns=["Unidade", "Vendas", "Meta", "Projeção", "% Projeção", "Vendas no dia"],
    )
    return _sorted(df, SALES_SORT, field, ascending)

def delivery_ranking(units: List[UnitStats], field: str = "pct_no_prazo", ascending: bool = False) -> pd.DataFrame:
    df = pd.DataFrame(
        [[u.unit, u.delivery_total, u.on_time_count, u.late_count, u.no_confirmation_count,
          u.on_time_percent, u.no_confirmation_percent, u.late_percent,
          u.with_photo_count, u.without_photo_count, u.with_photo_percent] for u in units],
        columns=["Unidade", "Total", "No prazo", "Fora do prazo", "Sem baixa",
                 "% No prazo", "% Sem baixa", "% Fora do prazo",
                 "Com foto", "Sem foto", "% Com foto"],
    )
    return _sorted(df, DELIVERY_SORT, field, ascending)

def manifest_ranking(units: List[UnitStats], field: str = "pct_com_mdfe", ascending: bool = False) -> pd.DataFrame:
    df = pd.DataFrame(
        [[u.unit, u.manifest_total, u.has_manifest_count, u.no_manifest_count,
          u.has_manifest_percent, u.no_manifest_percent] for u in units],
        columns=["Unidade", "Emissões", "Com MDF-e", "Sem MDF-e", "% Com MDF-e", "% Sem MDF-e"],
    )
    return _sorted(df, MANIFEST_SORT, field, ascending)

def drilldown_docs(stats: UnitStats, bucket: str) -> List[Cte]:
    """Records behind one bucket, newest first."""
    _, attr = DRILLDOWN_BUCKETS[bucket]
    docs = getattr(stats, attr)
    return sorted(docs, key=lambda c: (c.issue_date, c.id), reverse=True)

_BUCKET_LABELS = {
    "ON_TIME": "No prazo", "LATE": "Fora do prazo", "NO_CONFIRMATION": "Sem baixa",
    "HAS_MANIFEST": "Com MDF-e", "NO_MANIFEST": "Sem MDF-e",
    "WITH_PHOTO": "Com foto", "WITHOUT_PHOTO": "Sem foto",
}

def export_frame(records: List[Cte]) -> pd.DataFrame:
    """Export columns plus the dashboard's own classification of each record."""
    out = records_frame(records)
    buckets = derive_features(frame_from_records(records))
    out["Situação Baixa"] = buckets["sla_bucket"].map(_BUCKET_LABELS).tolist()
    out["Situação MDF-e"] = buckets["manifest_bucket"].map(_BUCKET_LABELS).tolist()
    out["Situação Foto"] = buckets["photo_bucket"].map({**_BUCKET_LABELS, "NO_CONFIRMATION": "Aguardando baixa"}).tolist()
    return out

# ---------- export ----------
def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")

def to_xls_bytes(df: pd.DataFrame) -> bytes:
    """Excel-compatible HTML table (opens in Excel as .xls)."""
    out = df.copy()
    if "Valor" in out.columns:
        out["Valor"] = out["Valor"].map(br_money)
    table = out.to_html(index=False, border=0)
    html = (
        '<html xmlns:x="urn:schemas-microsoft-com:office:excel">'
        '<head><meta charset="utf-8"></head><body>'
        f"{table}</body></html>"
    )
    return html.encode("utf-8")

def download_buttons(df: pd.DataFrame, name: str) -> None:
    c1, c2 = st.columns(2)
    c1.download_button("Baixar CSV", to_csv_bytes(df), f"{name}.csv", "text/csv",
                       key=f"csv_{name}", use_container_width=True)
    c2.download_button("Baixar XLS", to_xls_bytes(df), f"{name}.xls", "application/vnd.ms-excel",
                       key=f"xls_{name}", use_container_width=True)

# ---------- render ----------
_MONEY = st.column_config.NumberColumn(format="R$ %.2f")
_PCT = st.column_config.NumberColumn(format="%.1f%%")

def ranking_table(df: pd.DataFrame, name: str) -> None:
    config = {}
    for col in df.columns:
        if col.startswith("%"):
            config[col] = _PCT
        elif col in ("Vendas", "Meta", "Projeção", "Vendas no dia"):
            config[col] = _MONEY
    st.dataframe(df, use_container_width=True, hide_index=True, column_config=config)
    download_buttons(df, name)

def drilldown_table(stats: UnitStats, bucket: str) -> None:
    label, _ = DRILLDOWN_BUCKETS[bucket]
    docs = drilldown_docs(stats, bucket)
    st.subheader(f"{label}: {stats.unit} ({len(docs)})")
    if not docs:
        st.info("Nenhum documento neste filtro.")
        return
    df = records_frame(docs)
    st.dataframe(df, use_container_width=True, hide_index=True, column_config={"Valor": _MONEY})
    download_buttons(df, f"{stats.unit}_{bucket}".replace(" ", "_"))

def download_filtered(records: List[Cte], name: str = "base_filtrada") -> None:
    st.caption(f"{len(records)} CT-es no filtro atual")
    download_buttons(export_frame(records), name)
