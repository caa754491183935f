"""Contexto do usuário autenticado.

O login fica com o provedor de identidade; aqui só validamos o token dele e
montamos o ``ActorContext`` usado em todas as operações.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Optional

import jwt
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import NotAuthenticated, PermissionDenied
from ..models import ApprovedEmail, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorContext:
    """Identidade efetiva de uma requisição."""

    uid: str
    email: str
    nome: str
    role: str = "user"
    plan: str = "none"
    impersonated_by: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_impersonating(self) -> bool:
        return self.impersonated_by is not None

    @classmethod
    def from_user(cls, user: User, impersonated_by: Optional[str] = None) -> "ActorContext":
        return cls(
            uid=user.uid,
            email=user.email,
            nome=user.nome,
            role=user.role,
            plan=user.plan,
            impersonated_by=impersonated_by,
        )


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Garante datetime com fuso UTC (SQLite devolve datetime sem fuso)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# =============================================================================
# TOKENS
# =============================================================================

def create_access_token(uid: str, email: str, name: str | None = None, expires_minutes: int = 60) -> str:
    """Emite um token no formato do provedor de identidade (uso em dev e testes)."""
    now = datetime.now(UTC)
    payload = {
        "sub": uid,
        "email": email,
        "name": name or email.split("@")[0],
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if settings.auth_jwt_audience:
        payload["aud"] = settings.auth_jwt_audience
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decodifica e valida um token JWT."""
    options = {"require": ["sub", "exp"]}
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


# =============================================================================
# SERVIÇO DE AUTENTICAÇÃO
# =============================================================================

class AuthService:
    """Resolve o usuário do token e aplica as regras de acesso."""

    def __init__(self, db: Session):
        self.db = db

    def resolve_actor(self, token: Optional[str], impersonate_uid: Optional[str] = None) -> ActorContext:
        """Monta o ActorContext de uma requisição."""
        if not token:
            raise NotAuthenticated()

        payload = decode_token(token)
        if not payload:
            raise NotAuthenticated("Token inválido ou expirado.")

        user = self.db.get(User, payload["sub"])
        if user is None:
            user = self.provision_user(
                uid=payload["sub"],
                email=payload.get("email") or "",
                nome=payload.get("name"),
                foto_perfil=payload.get("picture"),
            )

        self.ensure_access(user)

        if not impersonate_uid or impersonate_uid == user.uid:
            return ActorContext.from_user(user)

        if not user.is_admin:
            raise PermissionDenied("Apenas administradores podem acessar outra conta.")

        target = self.db.get(User, impersonate_uid)
        if target is None:
            raise PermissionDenied("Usuário alvo não encontrado.")

        logger.info(f"Admin {user.uid} acessando conta de {target.uid}")
        return ActorContext.from_user(target, impersonated_by=user.uid)

    def ensure_access(self, user: User) -> None:
        """Bloqueia contas inativas ou com acesso expirado."""
        if not user.active:
            raise PermissionDenied("Conta desativada. Entre em contato com o suporte.")
        expires_at = as_utc(user.access_expires_at)
        if expires_at is not None and expires_at < datetime.now(UTC):
            raise PermissionDenied("Seu acesso expirou. Renove seu plano para continuar.")

    def provision_user(
        self,
        uid: str,
        email: str,
        nome: Optional[str] = None,
        foto_perfil: Optional[str] = None,
    ) -> User:
        """Cria o usuário no primeiro acesso.

        O e-mail precisa estar na lista de aprovados (compra de plano) ou na
        lista de admins da configuração.
        """
        email = email.strip().lower()
        if not email:
            raise NotAuthenticated("Token sem e-mail.")

        admin_emails = {e.strip().lower() for e in settings.admin_emails}
        if email in admin_emails:
            role, plan = "admin", "none"
        else:
            approved = (
                self.db.query(ApprovedEmail)
                .filter(ApprovedEmail.email == email)
                .order_by(ApprovedEmail.id.desc())
                .first()
            )
            if not approved:
                raise PermissionDenied(
                    "Seu e-mail não está na lista de aprovados. "
                    "Por favor, realize a compra de um plano para se cadastrar."
                )
            role, plan = "user", approved.plan

        user = User(
            uid=uid,
            email=email,
            nome=nome or email.split("@")[0],
            foto_perfil=foto_perfil,
            plan=plan,
            role=role,
            active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Usuário provisionado: {uid} ({email}) plano={plan} papel={role}")
        return user
