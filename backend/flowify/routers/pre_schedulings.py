"""Router para pré-agendamentos."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..models import PreScheduling
from ..schemas import (
    PreSchedulingCreate,
    PreSchedulingOut,
    PreSchedulingStatus,
    PreSchedulingUpdate,
)
from ..services.plan_limits import can_add_pre_scheduling, enforce
from .auth import Store
from .products import get_owned_product

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def get_owned_pre_scheduling(store, pre_scheduling_id: int) -> PreScheduling:
    pre = store.get(PreScheduling, pre_scheduling_id)
    if not pre:
        raise HTTPException(status_code=404, detail="Pré-agendamento não encontrado")
    return pre


@router.post("/", response_model=PreSchedulingOut, status_code=201)
@limiter.limit("60/minute")
def create_pre_scheduling(request: Request, payload: PreSchedulingCreate, store: Store):
    """Cria um pré-agendamento com status Pendente."""
    enforce(can_add_pre_scheduling(store.db, store.actor))
    product = get_owned_product(store, payload.produto_id)

    data = payload.model_dump()
    data["plataforma"] = payload.plataforma.value
    pre = PreScheduling(
        user_id=store.uid,
        produto_nome=product.nome,
        status=PreSchedulingStatus.PENDENTE.value,
        **data,
    )
    store.db.add(pre)
    store.db.commit()
    store.db.refresh(pre)

    logger.info(f"Pré-agendamento criado: {pre.id} ({store.uid})")
    return pre


@router.get("/", response_model=list[PreSchedulingOut])
def list_pre_schedulings(
    store: Store,
    status: PreSchedulingStatus | None = Query(None, description="Filtrar por status"),
):
    """Lista pré-agendamentos, os mais recentes primeiro."""
    query = store.query(PreScheduling)
    if status:
        query = query.filter(PreScheduling.status == status.value)
    return query.order_by(PreScheduling.created_at.desc(), PreScheduling.id.desc()).all()


@router.get("/{pre_scheduling_id}", response_model=PreSchedulingOut)
def get_pre_scheduling(pre_scheduling_id: int, store: Store):
    return get_owned_pre_scheduling(store, pre_scheduling_id)


@router.put("/{pre_scheduling_id}", response_model=PreSchedulingOut)
def update_pre_scheduling(pre_scheduling_id: int, payload: PreSchedulingUpdate, store: Store):
    """Atualiza um pré-agendamento (inclusive Pendente -> Confirmado)."""
    pre = get_owned_pre_scheduling(store, pre_scheduling_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if hasattr(value, "value"):
            value = value.value
        setattr(pre, field, value)

    store.db.commit()
    store.db.refresh(pre)
    return pre


@router.delete("/{pre_scheduling_id}")
def delete_pre_scheduling(pre_scheduling_id: int, store: Store):
    pre = get_owned_pre_scheduling(store, pre_scheduling_id)
    store.db.delete(pre)
    store.db.commit()

    logger.info(f"Pré-agendamento removido: {pre_scheduling_id}")
    return {"message": "Pré-agendamento removido com sucesso", "id": pre_scheduling_id}
