"""Router do painel administrativo: usuários, planos, e-mails aprovados e logs."""

import logging
from math import ceil
from typing import List

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import func, or_

from ..config import settings
from ..database import DbSession
from ..models import ActivityLog, ApprovedEmail, Plan, Sale, User
from ..schemas import (
    ActivityLogOut,
    AdminUserUpdate,
    ApprovedEmailCreate,
    ApprovedEmailOut,
    PlanCreate,
    PlanOut,
    RankingEntry,
    UserListResponse,
    UserOut,
)
from ..services.activity import ActivityService
from ..services.plan_limits import seed_default_plans
from .auth import AdminActor
from .plans import apply_plan_payload, plan_to_out

logger = logging.getLogger(__name__)
router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _get_user_or_404(db, uid: str) -> User:
    user = db.get(User, uid)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    return user


# =============================================================================
# USUÁRIOS
# =============================================================================

@router.get("/users", response_model=UserListResponse)
def list_users(
    db: DbSession,
    admin: AdminActor,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, description="Buscar por nome ou email"),
    plan: str | None = Query(None, description="Filtrar por plano"),
):
    """Lista usuários com busca e paginação."""
    query = db.query(User)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(User.nome.ilike(term), User.email.ilike(term)))
    if plan:
        query = query.filter(User.plan == plan)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.uid)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return UserListResponse(
        items=users,
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/users/{uid}", response_model=UserOut)
def get_user(uid: str, db: DbSession, admin: AdminActor):
    return _get_user_or_404(db, uid)


@router.put("/users/{uid}", response_model=UserOut)
def update_user(uid: str, payload: AdminUserUpdate, db: DbSession, admin: AdminActor):
    """Altera plano, papel, status ou validade de acesso de um usuário."""
    user = _get_user_or_404(db, uid)
    update_data = payload.model_dump(exclude_unset=True)

    if update_data.get("plan") and update_data["plan"] != "none" and not db.get(Plan, update_data["plan"]):
        raise HTTPException(status_code=400, detail="Plano inexistente")
    if user.uid == admin.uid and update_data.get("active") is False:
        raise HTTPException(status_code=400, detail="Não é possível desativar a própria conta")

    for field, value in update_data.items():
        if hasattr(value, "value"):
            value = value.value
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    ActivityService(db).log(
        "user.updated",
        actor=admin,
        target_type="user",
        target_id=user.uid,
        target_name=user.nome,
        details={k: str(v) for k, v in update_data.items()},
    )
    logger.info(f"Usuário {uid} atualizado por {admin.uid}: {sorted(update_data)}")
    return user


@router.get("/ranking", response_model=List[RankingEntry])
def sales_ranking(
    db: DbSession,
    admin: AdminActor,
    limit: int = Query(50, ge=1, le=500),
):
    """Usuários ordenados pelo faturamento total."""
    total_faturamento = func.coalesce(func.sum(Sale.valor_total), 0)
    rows = (
        db.query(
            User.uid,
            User.nome,
            User.email,
            total_faturamento.label("total_faturamento"),
            func.coalesce(func.sum(Sale.comissao), 0).label("total_comissao"),
            func.count(Sale.id).label("total_vendas"),
        )
        .outerjoin(Sale, Sale.user_id == User.uid)
        .filter(User.role == "user")
        .group_by(User.uid, User.nome, User.email)
        .order_by(total_faturamento.desc(), User.nome)
        .limit(limit)
        .all()
    )
    return [
        RankingEntry(
            uid=r.uid,
            nome=r.nome,
            email=r.email,
            total_faturamento=round(float(r.total_faturamento), 2),
            total_comissao=round(float(r.total_comissao), 2),
            total_vendas=int(r.total_vendas),
        )
        for r in rows
    ]


# =============================================================================
# E-MAILS APROVADOS
# =============================================================================

@router.get("/approved-emails", response_model=List[ApprovedEmailOut])
def list_approved_emails(db: DbSession, admin: AdminActor):
    return db.query(ApprovedEmail).order_by(ApprovedEmail.created_at.desc(), ApprovedEmail.id.desc()).all()


@router.post("/approved-emails", response_model=ApprovedEmailOut, status_code=201)
def create_approved_email(payload: ApprovedEmailCreate, db: DbSession, admin: AdminActor):
    """Libera um e-mail para cadastro com o plano informado."""
    if not db.get(Plan, payload.plan):
        raise HTTPException(status_code=400, detail="Plano inexistente")

    approved = ApprovedEmail(email=payload.email.lower(), plan=payload.plan)
    db.add(approved)
    db.commit()
    db.refresh(approved)

    ActivityService(db).log(
        "approved_email.created",
        actor=admin,
        target_type="approved_email",
        target_id=approved.id,
        target_name=approved.email,
        details={"plan": approved.plan},
    )
    return approved


@router.delete("/approved-emails/{approved_id}")
def delete_approved_email(approved_id: int, db: DbSession, admin: AdminActor):
    approved = db.get(ApprovedEmail, approved_id)
    if not approved:
        raise HTTPException(status_code=404, detail="E-mail aprovado não encontrado")
    email = approved.email
    db.delete(approved)
    db.commit()

    ActivityService(db).log(
        "approved_email.deleted",
        actor=admin,
        target_type="approved_email",
        target_id=approved_id,
        target_name=email,
    )
    return {"message": "E-mail removido da lista de aprovados", "id": approved_id}


# =============================================================================
# PLANOS
# =============================================================================

@router.get("/plans", response_model=List[PlanOut])
def list_all_plans(db: DbSession, admin: AdminActor):
    """Todos os planos, inclusive inativos."""
    return [plan_to_out(p) for p in db.query(Plan).order_by(Plan.price, Plan.id).all()]


@router.post("/plans", response_model=PlanOut, status_code=201)
@limiter.limit("20/minute")
def create_plan(request: Request, payload: PlanCreate, db: DbSession, admin: AdminActor):
    if db.get(Plan, payload.id):
        raise HTTPException(status_code=409, detail=f"Plano {payload.id} já existe")

    plan = apply_plan_payload(Plan(id=payload.id), payload)
    db.add(plan)
    db.commit()
    db.refresh(plan)

    ActivityService(db).log("plan.created", actor=admin, target_type="plan", target_id=plan.id, target_name=plan.name)
    return plan_to_out(plan)


@router.put("/plans/{plan_id}", response_model=PlanOut)
def update_plan(plan_id: str, payload: PlanCreate, db: DbSession, admin: AdminActor):
    """Substitui os dados do plano. O id não muda."""
    plan = db.get(Plan, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plano não encontrado")
    if payload.id != plan_id:
        raise HTTPException(status_code=400, detail="O id do plano não pode ser alterado")

    apply_plan_payload(plan, payload)
    db.commit()
    db.refresh(plan)

    ActivityService(db).log("plan.updated", actor=admin, target_type="plan", target_id=plan.id, target_name=plan.name)
    return plan_to_out(plan)


@router.delete("/plans/{plan_id}")
def delete_plan(plan_id: str, db: DbSession, admin: AdminActor):
    """Remove um plano sem assinantes."""
    plan = db.get(Plan, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plano não encontrado")

    subscribers = db.query(func.count(User.uid)).filter(User.plan == plan_id).scalar() or 0
    if subscribers:
        raise HTTPException(
            status_code=409,
            detail=f"Não é possível remover: {subscribers} usuário(s) neste plano",
        )

    db.delete(plan)
    db.commit()
    ActivityService(db).log("plan.deleted", actor=admin, target_type="plan", target_id=plan_id)
    return {"message": "Plano removido com sucesso", "id": plan_id}


@router.post("/plans/seed", response_model=List[PlanOut])
def seed_plans(db: DbSession, admin: AdminActor):
    """Cria os planos padrão que ainda não existem."""
    created = seed_default_plans(db)
    if created:
        ActivityService(db).log(
            "plan.seeded",
            actor=admin,
            target_type="plan",
            details={"plans": [p.id for p in created]},
        )
    logger.info(f"Planos padrão criados: {[p.id for p in created]}")
    return [plan_to_out(p) for p in created]


# =============================================================================
# LOGS DE ATIVIDADE
# =============================================================================

@router.get("/activity", response_model=List[ActivityLogOut])
def list_activity(
    db: DbSession,
    admin: AdminActor,
    action: str | None = Query(None, description="Filtrar por ação"),
    actor_uid: str | None = Query(None, description="Filtrar por usuário"),
    limit: int = Query(100, ge=1, le=500),
):
    query = db.query(ActivityLog)
    if action:
        query = query.filter(ActivityLog.action == action)
    if actor_uid:
        query = query.filter(ActivityLog.actor_uid == actor_uid)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
