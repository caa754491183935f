"""Serviço de log de atividades."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models import ActivityLog
from .auth import ActorContext


class ActivityService:
    """Registra ações no log de atividades."""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        action: str,
        actor: Optional[ActorContext] = None,
        target_type: Optional[str] = None,
        target_id: Optional[object] = None,
        target_name: Optional[str] = None,
        details: Optional[dict] = None,
        commit: bool = True,
    ) -> ActivityLog:
        """Registra uma ação. Sem actor, a ação é atribuída ao sistema.

        Com ``commit=False`` a entrada entra na transação em andamento.
        """
        if actor is None:
            actor_fields = {"actor_role": "system"}
        else:
            actor_fields = {
                "actor_uid": actor.uid,
                "actor_nome": actor.nome,
                "actor_email": actor.email,
                "actor_role": actor.role,
            }
            if actor.impersonated_by:
                details = {**(details or {}), "impersonated_by": actor.impersonated_by}

        entry = ActivityLog(
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            target_name=target_name,
            details=details,
            **actor_fields,
        )
        self.db.add(entry)
        if commit:
            self.db.commit()
        return entry
