from __future__ import annotations
from dataclasses import asdict
from typing import Any, Iterable, Optional

import pandas as pd

from constants import (
    HAS_MANIFEST, LATE, MANIFEST_OK_TERMS, NO_CONFIRMATION, NO_MANIFEST, ON_TIME,
    PROOF_NOT_CONFIRMED, PROOF_NOT_CONFIRMED_PARTIAL, PROOF_WITH_PHOTO,
    SLA_NO_DATE, SLA_ON_TIME, WITH_PHOTO, WITHOUT_PHOTO,
)
from models import Cte
from parsing import normalize_status

# The classifiers only read attributes, so they accept a Cte or a DataFrame row.

def _missing(value: Any) -> bool:
    return value is None or bool(pd.isna(value))

def classify_sla(cte: Any) -> str:
    sla_status = normalize_status(cte.sla_status)
    proof = normalize_status(cte.delivery_proof_status)
    if (
        _missing(cte.sla_deadline)
        or sla_status in ("", SLA_NO_DATE)
        or proof == PROOF_NOT_CONFIRMED
        or PROOF_NOT_CONFIRMED_PARTIAL in proof
    ):
        return NO_CONFIRMATION
    return ON_TIME if sla_status == SLA_ON_TIME else LATE

def classify_manifest(cte: Any) -> str:
    status = normalize_status(cte.manifest_status)
    return HAS_MANIFEST if any(t in status for t in MANIFEST_OK_TERMS) else NO_MANIFEST

def classify_photo(cte: Any, sla_bucket: Optional[str] = None) -> str:
    """Photo proof only counts once delivery is confirmed; before that it is NO_CONFIRMATION."""
    if sla_bucket is None:
        sla_bucket = classify_sla(cte)
    if sla_bucket == NO_CONFIRMATION:
        return NO_CONFIRMATION
    return WITH_PHOTO if PROOF_WITH_PHOTO in normalize_status(cte.delivery_proof_status) else WITHOUT_PHOTO

def frame_from_records(records: Iterable[Cte]) -> pd.DataFrame:
    rows = [asdict(c) for c in records]
    if not rows:
        return pd.DataFrame(columns=list(Cte.__dataclass_fields__))
    return pd.DataFrame(rows)

def derive_features(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    if df.empty:
        for col in ("sla_bucket", "manifest_bucket", "photo_bucket"):
            df[col] = pd.Series(dtype="object")
        return df
    if "sla_bucket" not in df.columns:
        df["sla_bucket"] = df.apply(classify_sla, axis=1)
    if "manifest_bucket" not in df.columns:
        df["manifest_bucket"] = df.apply(classify_manifest, axis=1)
    if "photo_bucket" not in df.columns:
        df["photo_bucket"] = df.apply(lambda r: classify_photo(r, r["sla_bucket"]), axis=1)
    return df
