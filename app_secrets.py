from __future__ import annotations
import os
import streamlit as st

from constants import CSV_URLS, DEFAULT_CACHE_TTL, DEFAULT_FEED_TIMEOUT

def get_secret(key: str) -> str | None:
    v = os.environ.get(key)
    if v:
        return v
    try:
        return st.secrets.get(key)  # type: ignore[attr-defined]
    except Exception:
        return None

def feed_url(name: str) -> str:
    """URL of a published feed ('BASE', 'META', 'DATAS', 'USUARIOS'); '<NAME>_CSV_URL' overrides it."""
    return get_secret(f"{name}_CSV_URL") or CSV_URLS[name]

def _int_setting(key: str, default: int) -> int:
    raw = get_secret(key)
    try:
        return int(raw) if raw else default
    except (TypeError, ValueError):
        return default

def feed_timeout() -> int:
    return _int_setting("FEED_TIMEOUT", DEFAULT_FEED_TIMEOUT)

def cache_ttl() -> int:
    return _int_setting("CACHE_TTL", DEFAULT_CACHE_TTL)
