"""Router para agendamentos de entrega."""

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..models import Scheduling, User, WhatsappConfirmation
from ..schemas import (
    Plataforma,
    SaleOut,
    SchedulingBoard,
    SchedulingCreate,
    SchedulingOut,
    SchedulingStatus,
    SchedulingUpdate,
    WhatsappLinkOut,
)
from ..services.activity import ActivityService
from ..services.conversion import ConversionService
from ..services.plan_limits import can_add_scheduling, can_send_whatsapp_confirmation, enforce
from ..services.whatsapp import build_link, render_message
from .auth import Store
from .products import get_owned_product

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def get_owned_scheduling(store, scheduling_id: int) -> Scheduling:
    scheduling = store.get(Scheduling, scheduling_id)
    if not scheduling:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")
    return scheduling


@router.post("/", response_model=SchedulingOut, status_code=201)
@limiter.limit("60/minute")
def create_scheduling(request: Request, payload: SchedulingCreate, store: Store):
    """Cria um agendamento. O nome do produto é copiado do catálogo."""
    enforce(can_add_scheduling(store.db, store.actor))
    product = get_owned_product(store, payload.produto_id)

    data = payload.model_dump()
    data["plataforma"] = payload.plataforma.value
    data["status"] = payload.status.value
    scheduling = Scheduling(user_id=store.uid, produto_nome=product.nome, **data)
    store.db.add(scheduling)
    store.db.commit()
    store.db.refresh(scheduling)

    logger.info(f"Agendamento criado: {scheduling.id} ({store.uid})")
    return scheduling


@router.get("/", response_model=list[SchedulingOut])
def list_schedulings(
    store: Store,
    status: Literal["Todos", "Agendar", "Agendados"] = Query("Todos", description="Filtro de status"),
    plataforma: Plataforma | None = Query(None, description="Filtrar por plataforma"),
):
    """Lista agendamentos ordenados pela data agendada."""
    query = store.query(Scheduling)
    if status == "Agendar":
        query = query.filter(Scheduling.status == SchedulingStatus.AGENDAR.value)
    elif status == "Agendados":
        query = query.filter(Scheduling.status == SchedulingStatus.AGENDADO.value)
    if plataforma:
        query = query.filter(Scheduling.plataforma == plataforma.value)
    return query.order_by(Scheduling.data_agendamento, Scheduling.id).all()


@router.get("/board", response_model=SchedulingBoard)
def scheduling_board(store: Store):
    """Quadro kanban com as colunas Agendar e Agendado."""
    schedulings = store.query(Scheduling).order_by(Scheduling.data_agendamento, Scheduling.id).all()
    return SchedulingBoard(
        agendar=[s for s in schedulings if s.status == SchedulingStatus.AGENDAR.value],
        agendado=[s for s in schedulings if s.status == SchedulingStatus.AGENDADO.value],
    )


@router.get("/{scheduling_id}", response_model=SchedulingOut)
def get_scheduling(scheduling_id: int, store: Store):
    return get_owned_scheduling(store, scheduling_id)


@router.put("/{scheduling_id}", response_model=SchedulingOut)
@limiter.limit("60/minute")
def update_scheduling(request: Request, scheduling_id: int, payload: SchedulingUpdate, store: Store):
    """Atualiza um agendamento. Trocar o produto atualiza o nome copiado."""
    scheduling = get_owned_scheduling(store, scheduling_id)

    update_data = payload.model_dump(exclude_unset=True)
    if "produto_id" in update_data:
        product = get_owned_product(store, update_data["produto_id"])
        scheduling.produto_nome = product.nome
    for field, value in update_data.items():
        if hasattr(value, "value"):
            value = value.value
        setattr(scheduling, field, value)

    store.db.commit()
    store.db.refresh(scheduling)
    return scheduling


@router.post("/{scheduling_id}/confirm", response_model=SchedulingOut)
def confirm_scheduling(scheduling_id: int, store: Store):
    """Marca o agendamento como Agendado (data confirmada com o cliente)."""
    scheduling = get_owned_scheduling(store, scheduling_id)
    if scheduling.status != SchedulingStatus.AGENDADO.value:
        scheduling.status = SchedulingStatus.AGENDADO.value
        store.db.commit()
        store.db.refresh(scheduling)
        logger.info(f"Agendamento confirmado: {scheduling_id}")
    return scheduling


@router.post("/{scheduling_id}/convert", response_model=SaleOut, status_code=201)
@limiter.limit("30/minute")
def convert_scheduling(request: Request, scheduling_id: int, store: Store):
    """
    Converte o agendamento em venda paga.

    O preço vem da tabela do produto (plataforma + quantidade, ou a primeira
    entrada da plataforma). A venda é criada e o agendamento removido na mesma
    transação.
    """
    return ConversionService(store).convert(scheduling_id)


@router.post("/{scheduling_id}/whatsapp", response_model=WhatsappLinkOut)
def whatsapp_confirmation(scheduling_id: int, store: Store):
    """Gera o link de confirmação via WhatsApp com o modelo do usuário."""
    enforce(can_send_whatsapp_confirmation(store.db, store.actor))
    scheduling = get_owned_scheduling(store, scheduling_id)
    user = store.db.get(User, store.uid)

    message = render_message(scheduling, user.whatsapp_message_template if user else None)
    store.db.add(WhatsappConfirmation(user_id=store.uid, agendamento_id=scheduling.id))
    store.db.commit()

    return WhatsappLinkOut(message=message, url=build_link(scheduling.cliente_telefone, message))


@router.delete("/{scheduling_id}")
@limiter.limit("30/minute")
def delete_scheduling(request: Request, scheduling_id: int, store: Store):
    """Remove um agendamento."""
    scheduling = get_owned_scheduling(store, scheduling_id)
    cliente_nome = scheduling.cliente_nome
    store.db.delete(scheduling)
    store.db.commit()

    ActivityService(store.db).log(
        "scheduling.deleted",
        actor=store.actor,
        target_type="scheduling",
        target_id=scheduling_id,
        target_name=cliente_nome,
    )
    logger.info(f"Agendamento removido: {scheduling_id}")
    return {"message": "Agendamento removido com sucesso", "id": scheduling_id}
