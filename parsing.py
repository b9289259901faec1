from __future__ import annotations
import math
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_DATE_SEP = re.compile(r"[/.\-]")
_NUM_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^[+-]?\d+")

def _text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float) and math.isnan(raw):
        return ""
    return str(raw).strip()

def _noon(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day, 12, 0, 0)
    except (ValueError, OverflowError):
        return None

def normalize_unit_name(raw: Any) -> str:
    return _text(raw).upper()

def normalize_status(raw: Any) -> str:
    return _text(raw).upper()

def parse_currency(raw: Any) -> float:
    """
    Parse a spreadsheet money cell ("R$ 1.234,56", "1234,5", "980.00") into a float.
    - With both '.' and ',' the dots are thousands separators and the comma is the decimal point
    - With only ',' the comma is the decimal point
    - The longest leading number is used; anything unparseable is 0
    """
    clean = _text(raw).replace("R$", "", 1).strip()
    if not clean:
        return 0.0
    if "," in clean and "." in clean:
        clean = clean.replace(".", "").replace(",", ".", 1)
    elif "," in clean:
        clean = clean.replace(",", ".", 1)
    m = _NUM_PREFIX.match(clean)
    if not m:
        return 0.0
    try:
        value = float(m.group(0))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0

def parse_int(raw: Any) -> int:
    m = _INT_PREFIX.match(_text(raw))
    return int(m.group(0)) if m else 0

def parse_date(raw: Any) -> Optional[datetime]:
    """
    Parse a date cell into a naive datetime pinned to 12:00.

    Order: ISO 'YYYY-MM-DD'; three parts split on '/', '.' or '-'
    (4-digit first part is Y-M-D, otherwise D-M-Y, 2-digit years are 20YY);
    then pandas' general parser. A trailing ' HH:MM[:SS]' is ignored.
    Returns None for empty, impossible or unparseable input.
    """
    text = _text(raw)
    if not text:
        return None
    head = text.split()[0]

    if _ISO_DATE.match(head):
        y, m, d = (int(p) for p in head.split("-"))
        return _noon(y, m, d)

    parts = _DATE_SEP.split(head)
    if len(parts) == 3 and all(p.isascii() and p.isdigit() for p in parts):
        p0, p1, p2 = (int(p) for p in parts)
        if len(parts[0]) == 4:
            return _noon(p0, p1, p2)
        year = p2 + 2000 if p2 < 100 else p2
        return _noon(year, p1, p0)

    try:
        ts = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return _noon(ts.year, ts.month, ts.day)

def day_key(value: datetime | date | None) -> Optional[date]:
    """Calendar day of a parsed date (the bucketing/comparison key)."""
    if value is None:
        return None
    return value.date() if isinstance(value, datetime) else value

# ---- display ----
def br_money(v: float | None) -> str:
    if not v:
        return "R$ 0,00"
    return f"R$ {float(v):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")

def br_percent(v: float | None) -> str:
    if v is None or pd.isna(v):
        return "0,0%"
    return f"{v:,.1f}".replace(",", "X").replace(".", ",").replace("X", ".") + "%"

def br_date(d: datetime | date | None) -> str:
    return d.strftime("%d/%m/%Y") if d else ""
