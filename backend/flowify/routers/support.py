"""Router de tickets de suporte (usuário e admin)."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..config import settings
from ..database import DbSession
from ..models import Ticket, TicketMessage, utc_now
from ..schemas import (
    TicketCreate,
    TicketDetailOut,
    TicketMessageCreate,
    TicketOut,
    TicketStatus,
    TicketStatusUpdate,
)
from ..services.activity import ActivityService
from ..services.auth import ActorContext
from .auth import Actor, AdminActor

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _add_message(db: Session, ticket: Ticket, actor: ActorContext, text: str, role: str) -> TicketMessage:
    message = TicketMessage(
        ticket_id=ticket.id,
        sender_id=actor.uid,
        sender_name=actor.nome,
        sender_role=role,
        message=text,
    )
    db.add(message)
    ticket.updated_at = utc_now()
    return message


def _get_ticket_or_404(db: Session, ticket_id: int) -> Ticket:
    ticket = db.get(Ticket, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket não encontrado")
    return ticket


# =============================================================================
# USUÁRIO
# =============================================================================

@router.post("/tickets", response_model=TicketDetailOut, status_code=201)
@limiter.limit("10/minute")
def create_ticket(request: Request, payload: TicketCreate, db: DbSession, actor: Actor):
    """Abre um ticket com a primeira mensagem."""
    ticket = Ticket(
        user_id=actor.uid,
        user_name=actor.nome,
        user_email=actor.email,
        subject=payload.subject,
        status=TicketStatus.OPEN.value,
    )
    db.add(ticket)
    db.flush()
    _add_message(db, ticket, actor, payload.message, "user")
    db.commit()
    db.refresh(ticket)

    logger.info(f"Ticket {ticket.id} aberto por {actor.uid}")
    return ticket


@router.get("/tickets", response_model=list[TicketOut])
def list_my_tickets(db: DbSession, actor: Actor):
    return (
        db.query(Ticket)
        .filter(Ticket.user_id == actor.uid)
        .order_by(Ticket.updated_at.desc(), Ticket.id.desc())
        .all()
    )


@router.get("/tickets/{ticket_id}", response_model=TicketDetailOut)
def get_my_ticket(ticket_id: int, db: DbSession, actor: Actor):
    ticket = _get_ticket_or_404(db, ticket_id)
    if ticket.user_id != actor.uid:
        raise HTTPException(status_code=404, detail="Ticket não encontrado")
    return ticket


@router.post("/tickets/{ticket_id}/messages", response_model=TicketDetailOut, status_code=201)
@limiter.limit("30/minute")
def add_my_message(request: Request, ticket_id: int, payload: TicketMessageCreate, db: DbSession, actor: Actor):
    """Responde um ticket. Ticket fechado volta para aberto."""
    ticket = _get_ticket_or_404(db, ticket_id)
    if ticket.user_id != actor.uid:
        raise HTTPException(status_code=404, detail="Ticket não encontrado")

    _add_message(db, ticket, actor, payload.message, "user")
    if ticket.status == TicketStatus.CLOSED.value:
        ticket.status = TicketStatus.OPEN.value
    db.commit()
    db.refresh(ticket)
    return ticket


# =============================================================================
# ADMIN
# =============================================================================

@admin_router.get("/tickets", response_model=list[TicketOut])
def list_tickets(
    db: DbSession,
    admin: AdminActor,
    status: TicketStatus | None = Query(None, description="Filtrar por status"),
):
    query = db.query(Ticket)
    if status:
        query = query.filter(Ticket.status == status.value)
    return query.order_by(Ticket.updated_at.desc(), Ticket.id.desc()).all()


@admin_router.get("/tickets/{ticket_id}", response_model=TicketDetailOut)
def get_ticket(ticket_id: int, db: DbSession, admin: AdminActor):
    return _get_ticket_or_404(db, ticket_id)


@admin_router.post("/tickets/{ticket_id}/messages", response_model=TicketDetailOut, status_code=201)
def reply_ticket(ticket_id: int, payload: TicketMessageCreate, db: DbSession, admin: AdminActor):
    """Resposta do suporte. O ticket passa para em andamento."""
    ticket = _get_ticket_or_404(db, ticket_id)
    _add_message(db, ticket, admin, payload.message, "admin")
    ticket.status = TicketStatus.IN_PROGRESS.value
    db.commit()
    db.refresh(ticket)

    ActivityService(db).log(
        "ticket.replied",
        actor=admin,
        target_type="ticket",
        target_id=ticket.id,
        target_name=ticket.subject,
    )
    return ticket


@admin_router.put("/tickets/{ticket_id}/status", response_model=TicketOut)
def update_ticket_status(ticket_id: int, payload: TicketStatusUpdate, db: DbSession, admin: AdminActor):
    ticket = _get_ticket_or_404(db, ticket_id)
    ticket.status = payload.status.value
    db.commit()
    db.refresh(ticket)

    ActivityService(db).log(
        "ticket.status_updated",
        actor=admin,
        target_type="ticket",
        target_id=ticket.id,
        target_name=ticket.subject,
        details={"status": ticket.status},
    )
    return ticket
