"""Router de avisos para os usuários."""

import logging

from fastapi import APIRouter, HTTPException
from sqlalchemy import or_

from ..database import DbSession
from ..models import Announcement, utc_now
from ..schemas import AnnouncementCreate, AnnouncementOut, AnnouncementUpdate
from ..services.activity import ActivityService
from .auth import Actor, AdminActor

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.get("/active", response_model=list[AnnouncementOut])
def active_announcements(db: DbSession, actor: Actor):
    """Avisos ativos, não expirados, para todos ou para o plano do usuário."""
    now = utc_now()
    return (
        db.query(Announcement)
        .filter(
            Announcement.is_active == True,
            or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
            Announcement.target_plan.in_(["all", actor.plan]),
        )
        .order_by(Announcement.created_at.desc(), Announcement.id.desc())
        .all()
    )


# =============================================================================
# ADMIN
# =============================================================================

@admin_router.get("/", response_model=list[AnnouncementOut])
def list_announcements(db: DbSession, admin: AdminActor):
    return db.query(Announcement).order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()


@admin_router.post("/", response_model=AnnouncementOut, status_code=201)
def create_announcement(payload: AnnouncementCreate, db: DbSession, admin: AdminActor):
    announcement = Announcement(**payload.model_dump())
    db.add(announcement)
    db.commit()
    db.refresh(announcement)

    ActivityService(db).log(
        "announcement.created",
        actor=admin,
        target_type="announcement",
        target_id=announcement.id,
        target_name=announcement.title,
        details={"target_plan": announcement.target_plan},
    )
    return announcement


@admin_router.put("/{announcement_id}", response_model=AnnouncementOut)
def update_announcement(announcement_id: int, payload: AnnouncementUpdate, db: DbSession, admin: AdminActor):
    announcement = db.get(Announcement, announcement_id)
    if not announcement:
        raise HTTPException(status_code=404, detail="Aviso não encontrado")

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(announcement, field, value)
    db.commit()
    db.refresh(announcement)

    ActivityService(db).log(
        "announcement.updated",
        actor=admin,
        target_type="announcement",
        target_id=announcement.id,
        target_name=announcement.title,
        details={"fields": sorted(update_data)},
    )
    return announcement


@admin_router.delete("/{announcement_id}")
def delete_announcement(announcement_id: int, db: DbSession, admin: AdminActor):
    announcement = db.get(Announcement, announcement_id)
    if not announcement:
        raise HTTPException(status_code=404, detail="Aviso não encontrado")
    title = announcement.title
    db.delete(announcement)
    db.commit()

    ActivityService(db).log(
        "announcement.deleted",
        actor=admin,
        target_type="announcement",
        target_id=announcement_id,
        target_name=title,
    )
    logger.info(f"Aviso removido: {announcement_id}")
    return {"message": "Aviso removido com sucesso", "id": announcement_id}
