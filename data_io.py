# data_io.py
from __future__ import annotations
import io
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import requests
import streamlit as st

from app_secrets import cache_ttl, feed_timeout, feed_url
from constants import BASE_COLS, DATAS_COLS, META_COLS
from models import AppData, Cte, FixedDays, UnitTarget
from parsing import normalize_unit_name, parse_currency, parse_date, parse_int

logger = logging.getLogger(__name__)

DATA_FEEDS = ("BASE", "META", "DATAS")

class FeedError(RuntimeError):
    """A published CSV feed could not be fetched or read."""

    def __init__(self, feed: str, reason: str):
        super().__init__(f"Feed {feed}: {reason}")
        self.feed = feed

# ---------- fetch ----------
def fetch_csv(name: str, url: Optional[str] = None, timeout: Optional[int] = None) -> pd.DataFrame:
    """
    Download one published sheet as a header-less DataFrame of strings.
    Row 0 is the sheet's header row; callers address cells by position.
    """
    url = url or feed_url(name)
    sep = "&" if "?" in url else "?"
    t0 = time.time()
    try:
        resp = requests.get(
            f"{url}{sep}t={int(t0 * 1000)}",
            headers={"Pragma": "no-cache", "Cache-Control": "no-cache"},
            timeout=timeout or feed_timeout(),
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FeedError(name, str(e)) from e

    resp.encoding = resp.encoding or "utf-8"
    try:
        df = read_rows(resp.text)
    except (pd.errors.ParserError, ValueError) as e:
        raise FeedError(name, f"unreadable CSV ({e})") from e
    logger.info("Fetched feed %s: %d rows in %.2fs", name, len(df), time.time() - t0)
    return df

def read_rows(text: str) -> pd.DataFrame:
    if not text.strip():
        return pd.DataFrame()
    opts = dict(header=None, dtype=str, keep_default_na=False, skip_blank_lines=True)
    # rows wider than the first one are bad lines to pandas; note their width and re-read
    wider: List[int] = []
    df = pd.read_csv(
        io.StringIO(text),
        engine="python",
        on_bad_lines=lambda fields: wider.append(len(fields)),
        **opts,
    )
    if wider:
        df = pd.read_csv(io.StringIO(text), names=range(max(wider)), **opts)
    # short rows are padded with NaN
    return df.fillna("").apply(lambda s: s.str.strip())

def _cell(row: Sequence[Any], idx: int) -> str:
    if idx >= len(row) or row[idx] is None:
        return ""
    return str(row[idx])

def _rows(df: pd.DataFrame, skip: int = 1) -> List[tuple]:
    if df is None or df.empty:
        return []
    return list(df.iloc[skip:].itertuples(index=False, name=None))

# ---------- feed → domain ----------
def parse_ctes(base: pd.DataFrame) -> List[Cte]:
    ctes: List[Cte] = []
    dropped = 0
    for row in _rows(base):
        issue_date = parse_date(_cell(row, BASE_COLS["issue_date"]))
        collection = normalize_unit_name(_cell(row, BASE_COLS["collection_unit"]))
        delivery = normalize_unit_name(_cell(row, BASE_COLS["delivery_unit"]))
        if issue_date is None or not (collection or delivery):
            dropped += 1
            continue
        ctes.append(Cte(
            id=_cell(row, BASE_COLS["id"]),
            issue_date=issue_date,
            sla_deadline=parse_date(_cell(row, BASE_COLS["sla_deadline"])),
            sla_status=_cell(row, BASE_COLS["sla_status"]),
            collection_unit=collection,
            delivery_unit=delivery,
            manifest_status=_cell(row, BASE_COLS["manifest_status"]),
            delivery_proof_status=_cell(row, BASE_COLS["delivery_proof_status"]),
            value=parse_currency(_cell(row, BASE_COLS["value"])),
            sender=_cell(row, BASE_COLS["sender"]),
            recipient=_cell(row, BASE_COLS["recipient"]),
        ))
    if dropped:
        logger.debug("Dropped %d shipment rows without a date or unit", dropped)
    return ctes

def parse_targets(meta: pd.DataFrame) -> List[UnitTarget]:
    targets = []
    for row in _rows(meta):
        unit = normalize_unit_name(_cell(row, META_COLS["unit_name"]))
        if unit:
            targets.append(UnitTarget(unit, parse_currency(_cell(row, META_COLS["target_revenue"]))))
    return targets

def parse_calendar(datas: pd.DataFrame, today: datetime) -> Dict[str, Any]:
    rows = [] if datas is None or datas.empty else list(datas.itertuples(index=False, name=None))
    header = rows[0] if rows else ()
    fixed_days = FixedDays(
        total=parse_int(_cell(header, DATAS_COLS["total_days"])),
        elapsed=parse_int(_cell(header, DATAS_COLS["elapsed_days"])),
    )
    ref_date = parse_date(_cell(rows[1], DATAS_COLS["ref_date"])) if len(rows) > 1 else None
    if ref_date is None:
        ref_date = (today - timedelta(days=1)).replace(hour=12, minute=0, second=0, microsecond=0)
    holidays = [h for h in (parse_date(_cell(r, DATAS_COLS["holiday"])) for r in rows[1:]) if h]
    return dict(fixed_days=fixed_days, ref_date=ref_date, holidays=holidays)

def build_app_data(
    base: pd.DataFrame,
    meta: pd.DataFrame,
    datas: pd.DataFrame,
    today: Optional[datetime] = None,
) -> AppData:
    today = today or datetime.now()
    ctes = parse_ctes(base)
    calendar = parse_calendar(datas, today)
    last_update = max((c.issue_date for c in ctes), default=None)
    if last_update is None:
        last_update = today.replace(hour=12, minute=0, second=0, microsecond=0)
    return AppData(
        ctes=ctes,
        targets=parse_targets(meta),
        last_update=last_update,
        **calendar,
    )

# ---------- loaders ----------
def load_app_data(timeout: Optional[int] = None) -> AppData:
    """Fetch the three data feeds concurrently; any failure fails the whole load."""
    with ThreadPoolExecutor(max_workers=len(DATA_FEEDS)) as pool:
        futures = [pool.submit(fetch_csv, name, None, timeout) for name in DATA_FEEDS]
        base, meta, datas = (f.result() for f in futures)
    data = build_app_data(base, meta, datas)
    logger.info(
        "Loaded %d CT-es, %d targets, %d holidays (days %d/%d, last update %s)",
        len(data.ctes), len(data.targets), len(data.holidays),
        data.fixed_days.elapsed, data.fixed_days.total, data.last_update.date(),
    )
    return data

def load_users(timeout: Optional[int] = None) -> pd.DataFrame:
    return fetch_csv("USUARIOS", timeout=timeout)

@st.cache_data(ttl=cache_ttl(), show_spinner="Carregando dados operacionais...")
def cached_app_data() -> AppData:
    return load_app_data()
