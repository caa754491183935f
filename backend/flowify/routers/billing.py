"""Router de faturamento."""

from fastapi import APIRouter
from sqlalchemy import func

from ..models import PreScheduling, Sale, Scheduling
from ..schemas import BillingSummary, MonthlyBilling, PreSchedulingStatus, SchedulingStatus
from ..services.billing import monthly_billing
from .auth import Store

router = APIRouter()


@router.get("/monthly", response_model=list[MonthlyBilling])
def billing_monthly(store: Store):
    """Faturamento por mês (valor, comissão e pedidos), mais recente primeiro."""
    sales = store.query(Sale).order_by(Sale.created_at.desc()).all()
    return monthly_billing(sales)


@router.get("/summary", response_model=BillingSummary)
def billing_summary(store: Store):
    """Totais para o dashboard."""
    valor_total, comissao_total, quantidade = (
        store.db.query(
            func.coalesce(func.sum(Sale.valor_total), 0),
            func.coalesce(func.sum(Sale.comissao), 0),
            func.count(Sale.id),
        )
        .filter(Sale.user_id == store.uid)
        .one()
    )

    def count_schedulings(status: str) -> int:
        return store.query(Scheduling).filter(Scheduling.status == status).count()

    pre_pendentes = (
        store.query(PreScheduling)
        .filter(PreScheduling.status == PreSchedulingStatus.PENDENTE.value)
        .count()
    )

    return BillingSummary(
        valor_total=round(float(valor_total or 0), 2),
        comissao_total=round(float(comissao_total or 0), 2),
        quantidade_vendas=int(quantidade or 0),
        agendamentos_pendentes=count_schedulings(SchedulingStatus.AGENDAR.value),
        agendamentos_confirmados=count_schedulings(SchedulingStatus.AGENDADO.value),
        pre_agendamentos_pendentes=pre_pendentes,
    )
