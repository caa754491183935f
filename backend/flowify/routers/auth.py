"""Router do usuário autenticado e dependências de acesso."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..database import DbSession
from ..errors import PermissionDenied
from ..models import User
from ..schemas import ProfileUpdate, UserOut
from ..services.activity import ActivityService
from ..services.auth import ActorContext, AuthService
from ..services.store import TenantStore

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


# =============================================================================
# DEPENDÊNCIAS
# =============================================================================

def get_actor(
    db: DbSession,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_impersonate_uid: Annotated[Optional[str], Header()] = None,
) -> ActorContext:
    """Obtém o ActorContext a partir do token do provedor de identidade."""
    token = credentials.credentials if credentials else None
    return AuthService(db).resolve_actor(token, impersonate_uid=x_impersonate_uid)


def require_admin(actor: ActorContext = Depends(get_actor)) -> ActorContext:
    """Exige papel admin (sem impersonação ativa)."""
    if not actor.is_admin or actor.is_impersonating:
        raise PermissionDenied("Acesso restrito a administradores.")
    return actor


def get_store(db: DbSession, actor: ActorContext = Depends(get_actor)) -> TenantStore:
    """Coleções do usuário efetivo da requisição."""
    return TenantStore(db, actor)


Actor = Annotated[ActorContext, Depends(get_actor)]
AdminActor = Annotated[ActorContext, Depends(require_admin)]
Store = Annotated[TenantStore, Depends(get_store)]


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/me", response_model=UserOut)
def get_me(db: DbSession, actor: Actor):
    """Perfil do usuário efetivo (o alvo, durante impersonação)."""
    return db.get(User, actor.uid)


@router.put("/me", response_model=UserOut)
def update_me(payload: ProfileUpdate, db: DbSession, actor: Actor):
    """Atualiza nome, foto e modelo de mensagem do WhatsApp."""
    user = db.get(User, actor.uid)

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    ActivityService(db).log(
        "profile.updated",
        actor=actor,
        target_type="user",
        target_id=user.uid,
        target_name=user.nome,
        details={"fields": sorted(update_data)},
    )
    logger.info(f"Perfil atualizado: {user.uid}")
    return user
