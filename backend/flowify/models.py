"""Models SQLAlchemy para o FlowiFy."""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def utc_now() -> datetime:
    """Retorna datetime atual em UTC."""
    return datetime.now(UTC)


# =============================================================================
# USUÁRIOS, PLANOS E ACESSO
# =============================================================================


class User(Base):
    """Usuário (tenant). O uid vem do provedor de identidade."""

    __tablename__ = "users"

    uid = Column(String(128), primary_key=True)
    nome = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    foto_perfil = Column(String(500), nullable=True)
    plan = Column(String(64), nullable=False, default="none")  # id do plano ou "none"
    active = Column(Boolean, default=True)
    role = Column(String(20), nullable=False, default="user")  # admin, user
    access_expires_at = Column(DateTime(timezone=True), nullable=True)
    whatsapp_message_template = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Plan(Base):
    """Plano de assinatura com limites de uso."""

    __tablename__ = "plans"

    id = Column(String(64), primary_key=True)  # iniciante, intermediario, bigode
    name = Column(String(120), nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    checkout_url = Column(String(500), nullable=False, default="#")
    features = Column(JSON, nullable=False, default=list)

    # Limites: -1 = ilimitado
    max_products = Column(Integer, nullable=False, default=1)
    max_schedulings_per_month = Column(Integer, nullable=False, default=10)
    max_pre_schedulings_per_month = Column(Integer, nullable=False, default=20)
    max_whatsapp_confirmations_per_month = Column(Integer, nullable=False, default=0)
    can_export_excel = Column(Boolean, default=False)
    can_view_analytics = Column(Boolean, default=False)
    can_use_cep_checker = Column(Boolean, default=False)

    popular = Column(Boolean, default=False)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class ApprovedEmail(Base):
    """E-mail liberado para cadastro após compra de um plano."""

    __tablename__ = "approved_emails"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    plan = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Announcement(Base):
    """Aviso exibido no dashboard."""

    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    target_plan = Column(String(64), nullable=False, default="all")
    is_active = Column(Boolean, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class ActivityLog(Base):
    """Registro de ações de usuários e admins."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_uid = Column(String(128), nullable=True, index=True)
    actor_nome = Column(String(255), nullable=True)
    actor_email = Column(String(255), nullable=True)
    actor_role = Column(String(20), nullable=False, default="user")  # admin, user, system
    action = Column(String(100), nullable=False, index=True)  # sale.converted, plan.updated, ...
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(100), nullable=True)
    target_name = Column(String(255), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    __table_args__ = (
        Index("ix_activity_target", "target_type", "target_id"),
    )


# =============================================================================
# CATÁLOGO
# =============================================================================


class Product(Base):
    """Produto do catálogo de um usuário."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    nome = Column(String(255), nullable=False)
    descricao = Column(Text, nullable=True)
    covered_cities = Column(JSON, nullable=False, default=list)  # nomes normalizados
    created_at = Column(DateTime(timezone=True), default=utc_now)

    precos_comissoes = relationship(
        "PriceCommission",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="PriceCommission.posicao",
    )


class PriceCommission(Base):
    """Preço e comissão para uma combinação plataforma + quantidade."""

    __tablename__ = "precos_comissoes"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    posicao = Column(Integer, nullable=False, default=0)  # ordem da lista
    plataforma = Column(String(20), nullable=False)  # Hyppe, Logzz
    quantidade = Column(Integer, nullable=False)
    preco = Column(Float, nullable=False)
    comissao = Column(Float, nullable=False)

    product = relationship("Product", back_populates="precos_comissoes")


# =============================================================================
# AGENDAMENTOS E VENDAS
# =============================================================================


class Scheduling(Base):
    """Entrega pendente (agendamento)."""

    __tablename__ = "agendamentos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    cliente_nome = Column(String(255), nullable=False)
    cliente_telefone = Column(String(30), nullable=False)
    cep = Column(String(9), nullable=False)
    endereco = Column(String(255), nullable=False)
    numero = Column(String(20), nullable=False)
    complemento = Column(String(255), nullable=True)
    bairro = Column(String(120), nullable=False)
    cidade = Column(String(120), nullable=False)
    # Sem FK: o produto pode ser removido depois do agendamento
    produto_id = Column(Integer, nullable=False, index=True)
    produto_nome = Column(String(255), nullable=True)
    quantidade = Column(Integer, nullable=False)
    plataforma = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="Agendar")  # Agendar, Agendado
    data_agendamento = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    __table_args__ = (
        Index("ix_agendamentos_user_status", "user_id", "status"),
        # Sem reuso de id no SQLite: sales.agendamento_id é único
        {"sqlite_autoincrement": True},
    )


class PreScheduling(Base):
    """Pré-agendamento aguardando confirmação do cliente."""

    __tablename__ = "pre_agendamentos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    cliente_nome = Column(String(255), nullable=False)
    cliente_whatsapp = Column(String(30), nullable=False)
    cep = Column(String(9), nullable=False)
    endereco = Column(String(255), nullable=False)
    numero = Column(String(20), nullable=False)
    complemento = Column(String(255), nullable=True)
    bairro = Column(String(120), nullable=False)
    cidade = Column(String(120), nullable=False)
    produto_id = Column(Integer, nullable=False)
    produto_nome = Column(String(255), nullable=True)
    quantidade = Column(Integer, nullable=False)
    plataforma = Column(String(20), nullable=False)
    data_prevista = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="Pendente")  # Pendente, Confirmado
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)


class Sale(Base):
    """Venda finalizada."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    cliente_nome = Column(String(255), nullable=False)
    cliente_telefone = Column(String(30), nullable=False)
    endereco = Column(String(500), nullable=True)
    produto_id = Column(Integer, nullable=False)
    produto_nome = Column(String(255), nullable=True)
    plataforma = Column(String(20), nullable=False)
    quantidade = Column(Integer, nullable=False)
    valor_total = Column(Float, nullable=False)
    comissao = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="Pago")
    # Preenchido só em vendas geradas por conversão; impede venda duplicada
    agendamento_id = Column(Integer, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    __table_args__ = (
        Index("ix_sales_user_created", "user_id", "created_at"),
    )


class WhatsappConfirmation(Base):
    """Link de confirmação via WhatsApp gerado para um agendamento."""

    __tablename__ = "whatsapp_confirmations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    agendamento_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)


# =============================================================================
# SUPORTE
# =============================================================================


class Ticket(Base):
    """Chamado de suporte."""

    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="open")  # open, in-progress, closed
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    messages = relationship(
        "TicketMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketMessage.id",
    )


class TicketMessage(Base):
    """Mensagem de um chamado."""

    __tablename__ = "ticket_messages"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(128), nullable=False)
    sender_name = Column(String(255), nullable=False)
    sender_role = Column(String(20), nullable=False)  # user, admin
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    ticket = relationship("Ticket", back_populates="messages")
