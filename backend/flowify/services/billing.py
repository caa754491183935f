"""Agregação de faturamento mensal a partir das vendas."""

from collections.abc import Iterable

from ..models import Sale
from ..schemas import MonthlyBilling

MESES = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]


def monthly_billing(sales: Iterable[Sale]) -> list[MonthlyBilling]:
    """Agrupa vendas por mês de criação, do mês mais recente para o mais antigo.

    Vendas sem data de criação são ignoradas.
    """
    months: dict[tuple[int, int], dict] = {}
    for sale in sales:
        if sale.created_at is None:
            continue
        key = (sale.created_at.year, sale.created_at.month)
        bucket = months.setdefault(key, {"valor_total": 0.0, "comissao_total": 0.0, "quantidade_pedidos": 0})
        bucket["valor_total"] += sale.valor_total
        bucket["comissao_total"] += sale.comissao
        bucket["quantidade_pedidos"] += 1

    result = []
    for (year, month) in sorted(months, reverse=True):
        bucket = months[(year, month)]
        result.append(
            MonthlyBilling(
                id=f"{month:02d}/{year}",
                mes=f"{MESES[month - 1]}/{year}",
                valor_total=round(bucket["valor_total"], 2),
                comissao_total=round(bucket["comissao_total"], 2),
                quantidade_pedidos=bucket["quantidade_pedidos"],
            )
        )
    return result
