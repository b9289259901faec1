# auth.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import streamlit as st

from constants import USER_COLS
from parsing import normalize_unit_name

logger = logging.getLogger(__name__)

_USER_KEY = "_dashboard_user"

@dataclass(frozen=True)
class User:
    username: str
    unit: str   # empty for managers

    @property
    def is_manager(self) -> bool:
        return not self.unit

@dataclass(frozen=True)
class AuthResult:
    user: Optional[User] = None
    error: str = ""

def authenticate(users: pd.DataFrame, username: str, password: str) -> AuthResult:
    """
    Match a login against the users sheet (row 0 is its header).
    Username is case-insensitive; the password is compared as typed.
    """
    wanted = (username or "").strip().lower()
    rows = [] if users is None or users.empty else users.iloc[1:].itertuples(index=False, name=None)
    for row in rows:
        name = str(row[USER_COLS["username"]]) if len(row) > USER_COLS["username"] else ""
        if not name or name.strip().lower() != wanted:
            continue
        stored = str(row[USER_COLS["password"]]) if len(row) > USER_COLS["password"] else ""
        if stored != password:
            return AuthResult(error="Senha incorreta")
        unit = normalize_unit_name(row[USER_COLS["unit"]]) if len(row) > USER_COLS["unit"] else ""
        logger.info("Login ok for %s (%s)", name, unit or "gestor")
        return AuthResult(user=User(username=name, unit=unit))
    return AuthResult(error="Usuário incorreto")

def current_user() -> Optional[User]:
    return st.session_state.get(_USER_KEY)

def sign_in(user: User) -> None:
    st.session_state[_USER_KEY] = user

def sign_out() -> None:
    for k in (_USER_KEY, "filters_model", "_pending_clear"):
        st.session_state.pop(k, None)
