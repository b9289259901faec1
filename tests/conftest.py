from datetime import datetime

import pytest

from models import Cte, FixedDays, UnitTarget


def _noon(y, m, d):
    return datetime(y, m, d, 12, 0, 0)


@pytest.fixture
def noon():
    return _noon


@pytest.fixture
def make_cte():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = dict(
            id=f"CTE{counter['n']:04d}",
            issue_date=_noon(2024, 3, 10),
            sla_deadline=_noon(2024, 3, 12),
            sla_status="NO PRAZO",
            collection_unit="A",
            delivery_unit="A",
            manifest_status="AUTORIZADO",
            delivery_proof_status="COM FOTO",
            value=1000.0,
            sender="REMETENTE LTDA",
            recipient="DESTINO SA",
        )
        fields.update(overrides)
        return Cte(**fields)

    return _make


@pytest.fixture
def fixed_days():
    return FixedDays(total=30, elapsed=10)


@pytest.fixture
def targets():
    return [UnitTarget("A", 20000.0)]
