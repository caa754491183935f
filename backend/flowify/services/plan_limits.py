"""Limites dos planos de assinatura.

Os limites vêm da tabela ``plans``; -1 significa ilimitado e 0 bloqueia o
recurso. Cada verificação retorna ``(permitido, mensagem)``.
"""

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import PlanLimitReached
from ..models import Plan, PreScheduling, Product, Scheduling, WhatsappConfirmation
from .auth import ActorContext

UNLIMITED = -1

NO_PLAN_MESSAGE = "Você precisa de um plano ativo para usar este recurso."

DEFAULT_PLANS = [
    {
        "id": "iniciante",
        "name": "Plano Iniciante",
        "price": 10,
        "features": [
            "5 Produtos",
            "20 Agendamentos/mês",
            "20 Pré-Agendamentos/mês",
            "Dashboard Simples",
        ],
        "max_products": 5,
        "max_schedulings_per_month": 20,
        "max_pre_schedulings_per_month": 20,
        "max_whatsapp_confirmations_per_month": 0,
        "can_export_excel": False,
        "can_view_analytics": False,
        "can_use_cep_checker": True,
        "popular": False,
    },
    {
        "id": "intermediario",
        "name": "Plano Chefe",
        "price": 49,
        "features": [
            "Produtos Ilimitados",
            "Agendamentos Ilimitados",
            "Pré-Agendamentos Ilimitados",
            "50 Confirmações WhatsApp/mês",
            "Dashboard completo",
            "Relatórios básicos",
            "Acesso à Ferramenta de CEP",
        ],
        "max_products": UNLIMITED,
        "max_schedulings_per_month": UNLIMITED,
        "max_pre_schedulings_per_month": UNLIMITED,
        "max_whatsapp_confirmations_per_month": 50,
        "can_export_excel": True,
        "can_view_analytics": False,
        "can_use_cep_checker": True,
        "popular": True,
    },
    {
        "id": "bigode",
        "name": "Plano Bigode",
        "price": 99,
        "features": [
            "Tudo do Plano Chefe",
            "Confirmações WhatsApp Ilimitadas",
            "Suporte Prioritário",
            "Análise de Dados Avançada",
        ],
        "max_products": UNLIMITED,
        "max_schedulings_per_month": UNLIMITED,
        "max_pre_schedulings_per_month": UNLIMITED,
        "max_whatsapp_confirmations_per_month": UNLIMITED,
        "can_export_excel": True,
        "can_view_analytics": True,
        "can_use_cep_checker": True,
        "popular": False,
    },
]


def seed_default_plans(db: Session) -> list[Plan]:
    """Cria os planos padrão que ainda não existem. Retorna os criados."""
    created = []
    for data in DEFAULT_PLANS:
        if db.get(Plan, data["id"]):
            continue
        plan = Plan(**data, checkout_url="#", active=True)
        db.add(plan)
        created.append(plan)
    db.commit()
    return created


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(UTC)
    return datetime(now.year, now.month, 1, tzinfo=UTC)


def get_user_plan(db: Session, actor: ActorContext) -> Optional[Plan]:
    """Plano ativo do usuário, ou None."""
    if not actor.plan or actor.plan == "none":
        return None
    plan = db.get(Plan, actor.plan)
    if plan is None or not plan.active:
        return None
    return plan


def _within_limit(limit: int, used: int) -> bool:
    if limit == UNLIMITED:
        return True
    return used < limit


def _count_this_month(db: Session, model: type, actor: ActorContext) -> int:
    count = (
        db.query(func.count(model.id))
        .filter(model.user_id == actor.uid, model.created_at >= month_start())
        .scalar()
    )
    return int(count or 0)


def can_add_product(db: Session, actor: ActorContext) -> tuple[bool, str]:
    plan = get_user_plan(db, actor)
    if plan is None:
        return False, NO_PLAN_MESSAGE
    used = db.query(func.count(Product.id)).filter(Product.user_id == actor.uid).scalar() or 0
    if not _within_limit(plan.max_products, used):
        return False, f"Seu plano permite até {plan.max_products} produto(s). Faça upgrade para cadastrar mais."
    return True, ""


def can_add_scheduling(db: Session, actor: ActorContext) -> tuple[bool, str]:
    plan = get_user_plan(db, actor)
    if plan is None:
        return False, NO_PLAN_MESSAGE
    used = _count_this_month(db, Scheduling, actor)
    if not _within_limit(plan.max_schedulings_per_month, used):
        return False, (
            f"Você atingiu o limite de {plan.max_schedulings_per_month} agendamentos neste mês. "
            "Faça upgrade para continuar."
        )
    return True, ""


def can_add_pre_scheduling(db: Session, actor: ActorContext) -> tuple[bool, str]:
    plan = get_user_plan(db, actor)
    if plan is None:
        return False, NO_PLAN_MESSAGE
    used = _count_this_month(db, PreScheduling, actor)
    if not _within_limit(plan.max_pre_schedulings_per_month, used):
        return False, (
            f"Você atingiu o limite de {plan.max_pre_schedulings_per_month} pré-agendamentos neste mês. "
            "Faça upgrade para continuar."
        )
    return True, ""


def can_send_whatsapp_confirmation(db: Session, actor: ActorContext) -> tuple[bool, str]:
    plan = get_user_plan(db, actor)
    if plan is None:
        return False, NO_PLAN_MESSAGE
    limit = plan.max_whatsapp_confirmations_per_month
    if limit == 0:
        return False, "Seu plano não inclui confirmações via WhatsApp."
    used = _count_this_month(db, WhatsappConfirmation, actor)
    if not _within_limit(limit, used):
        return False, f"Você atingiu o limite de {limit} confirmações via WhatsApp neste mês."
    return True, ""


def can_use_cep_checker(db: Session, actor: ActorContext) -> tuple[bool, str]:
    plan = get_user_plan(db, actor)
    if plan is None or not plan.can_use_cep_checker:
        return False, "Seu plano não inclui a ferramenta de CEP."
    return True, ""


def enforce(check: tuple[bool, str]) -> None:
    """Levanta PlanLimitReached quando a verificação falha."""
    allowed, message = check
    if not allowed:
        raise PlanLimitReached(message)
