APP_TITLE = "Painel Operacional de Unidades"

_SHEET = "https://docs.google.com/spreadsheets/d/e/2PACX-1vRktG6osG27FrV9nhYsMnLcVoRjNmDpfG8lIxEMDhqYabMVvIfw_Kq_IQ8r3b3BM9YgJaSfxRC9cdUI/pub"
CSV_URLS = {
    "BASE": f"{_SHEET}?gid=359294113&single=true&output=csv",
    "META": f"{_SHEET}?gid=345407316&single=true&output=csv",
    "DATAS": f"{_SHEET}?gid=2142272842&single=true&output=csv",
    "USUARIOS": f"{_SHEET}?gid=8947323&single=true&output=csv",
}

# Column positions (0-indexed) in each published feed
BASE_COLS = {
    "id": 0,
    "issue_date": 2,
    "sender": 3,
    "recipient": 4,
    "sla_deadline": 5,
    "sla_status": 6,
    "collection_unit": 7,
    "delivery_unit": 8,
    "delivery_proof_status": 9,
    "manifest_status": 10,
    "value": 11,
}
META_COLS = {"unit_name": 0, "target_revenue": 1}
DATAS_COLS = {
    "total_days": 6,      # header row
    "elapsed_days": 7,    # header row
    "ref_date": 4,        # row 1
    "holiday": 2,         # rows 1..n
}
USER_COLS = {"username": 0, "password": 1, "unit": 2}

# Status vocabulary (already normalized: trimmed + uppercase)
SLA_ON_TIME = "NO PRAZO"
SLA_NO_DATE = "SEM DATA"
PROOF_NOT_CONFIRMED = "SEM BAIXA"
PROOF_NOT_CONFIRMED_PARTIAL = "NÃO BAIXADO"
PROOF_WITH_PHOTO = "COM FOTO"
MANIFEST_OK_TERMS = ("COM MDFE", "ENCERRADO", "AUTORIZADO")

ON_TIME = "ON_TIME"
LATE = "LATE"
NO_CONFIRMATION = "NO_CONFIRMATION"
HAS_MANIFEST = "HAS_MANIFEST"
NO_MANIFEST = "NO_MANIFEST"
WITH_PHOTO = "WITH_PHOTO"
WITHOUT_PHOTO = "WITHOUT_PHOTO"

EXPORT_COLUMNS = [
    "ID/CTE", "Data", "Unidade Coleta", "Unidade Entrega", "Valor",
    "Status Prazo", "Status MDFE", "Remetente", "Destinatário",
]

KPI_FORMATS = {
    "total_documents": "{:,}",
    "percent": "{:.1f}%",
}

COLORS = {
    "primary": "#2E31B4",
    "success": "#059669",
    "warning": "#EAB308",
    "danger": "#EC1B23",
    "neutral": "#808080",
    "background": "#F2F2F8",
}

DEFAULT_FEED_TIMEOUT = 30
DEFAULT_CACHE_TTL = 600
