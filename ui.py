from __future__ import annotations
from typing import Callable, Optional, Tuple

import streamlit as st

from auth import User
from parsing import br_date

def header(app_title: str, user: Optional[User] = None, on_logout: Optional[Callable[[], None]] = None) -> None:
    st.set_page_config(page_title=app_title, layout="wide", page_icon="🚚")
    left, right = st.columns([5, 1])
    left.title(app_title)
    if user is not None and on_logout is not None:
        right.caption(f"👤 {user.username}" + (f" · {user.unit}" if user.unit else " · Gestor"))
        right.button("Sair", on_click=on_logout, use_container_width=True)

def login_form(error: str = "") -> Optional[Tuple[str, str]]:
    """Returns (username, password) once submitted."""
    _, mid, _ = st.columns([1, 2, 1])
    with mid:
        st.subheader("Acesso")
        with st.form("login"):
            username = st.text_input("Usuário")
            password = st.text_input("Senha", type="password")
            submitted = st.form_submit_button("Entrar", use_container_width=True)
        if error:
            st.error(error)
    return (username, password) if submitted else None

def load_error(message: str, on_retry: Callable[[], None]) -> None:
    st.error(message)
    st.button("Tentar novamente", on_click=on_retry)
    st.stop()

def data_caption(last_update, ref_date, elapsed: int, total: int) -> None:
    st.caption(
        f"Última emissão carregada: {br_date(last_update)} · Referência da planilha: {br_date(ref_date)} "
        f"· Dias úteis: {elapsed}/{total}"
    )

def footer_description() -> None:
    with st.expander("ℹ️ Como os indicadores são calculados", expanded=False):
        st.markdown(
            """
            - **Vendas**: soma do valor dos CT-es em que a unidade é a unidade de coleta.
            - **Recebido**: soma do valor dos CT-es em que a unidade é a unidade de entrega.
            - **Projeção** = vendas ÷ dias úteis decorridos × dias úteis do período.
            - **Baixa**: *no prazo*, *fora do prazo* ou *sem baixa* (sem prazo, sem status
              ou ainda não baixado), contada na unidade de entrega.
            - **Foto**: com/sem foto, apenas para CT-es já baixados.
            - **MDF-e**: com MDF-e quando o status contém COM MDFE, ENCERRADO ou AUTORIZADO.
            """
        )
