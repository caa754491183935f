"""Schemas Pydantic para validação e serialização."""

import re
from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


# === Enums ===


class Plataforma(str, Enum):
    """Plataformas de entrega com pagamento na entrega."""

    HYPPE = "Hyppe"
    LOGZZ = "Logzz"


class SchedulingStatus(str, Enum):
    """Status de um agendamento."""

    AGENDAR = "Agendar"
    AGENDADO = "Agendado"


class PreSchedulingStatus(str, Enum):
    """Status de um pré-agendamento."""

    PENDENTE = "Pendente"
    CONFIRMADO = "Confirmado"


class SaleStatus(str, Enum):
    """Status de uma venda."""

    PAGO = "Pago"


class TicketStatus(str, Enum):
    """Status de um chamado de suporte."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    CLOSED = "closed"


class UserRole(str, Enum):
    """Papéis de usuário."""

    ADMIN = "admin"
    USER = "user"


# === Validators ===


CEP_PATTERN = re.compile(r"^\d{8}$")


def normalize_cep(value: str) -> str:
    """Remove pontuação do CEP e valida os 8 dígitos."""
    digits = re.sub(r"\D", "", value or "")
    if not CEP_PATTERN.match(digits):
        raise ValueError("CEP deve ter 8 dígitos")
    return digits


def normalize_phone(value: str) -> str:
    """Mantém só os dígitos do telefone."""
    digits = re.sub(r"\D", "", value or "")
    if len(digits) < 10 or len(digits) > 13:
        raise ValueError("Telefone inválido")
    return digits


class PartialUpdate(BaseModel):
    """Base das atualizações parciais.

    Campo omitido não muda; ``null`` só é aceito nos campos listados em
    ``nullable_fields`` (colunas opcionais no banco).
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data):
        if isinstance(data, dict):
            nulls = sorted(k for k, v in data.items() if v is None and k not in cls.nullable_fields)
            if nulls:
                raise ValueError(f"Campos não podem ser nulos: {', '.join(nulls)}")
        return data


# === Paginação ===


class Page(BaseModel):
    """Campos comuns das listagens paginadas."""

    total: int
    page: int
    page_size: int
    pages: int


# === Produtos ===


class PriceCommissionIn(BaseModel):
    """Entrada de preço/comissão para plataforma + quantidade."""

    plataforma: Plataforma
    quantidade: int = Field(..., ge=1)
    preco: float = Field(..., ge=0)
    comissao: float = Field(..., ge=0)


class PriceCommissionOut(PriceCommissionIn):
    model_config = ConfigDict(from_attributes=True)


class ProductBase(BaseModel):
    """Schema base para produto."""

    nome: str = Field(..., min_length=1, max_length=255)
    descricao: str | None = Field(None, max_length=2000)
    precos_comissoes: list[PriceCommissionIn] = Field(..., min_length=1)
    covered_cities: list[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(PartialUpdate):
    """Atualização parcial de produto."""

    nullable_fields = frozenset({"descricao"})

    nome: str | None = Field(None, min_length=1, max_length=255)
    descricao: str | None = Field(None, max_length=2000)
    precos_comissoes: list[PriceCommissionIn] | None = Field(None, min_length=1)
    covered_cities: list[str] | None = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    descricao: str | None = None
    precos_comissoes: list[PriceCommissionOut]
    covered_cities: list[str] = []
    created_at: datetime | None = None


class ProductListResponse(Page):
    items: list[ProductOut]


# === Endereço ===


class AddressFields(BaseModel):
    """Endereço de entrega decomposto."""

    cep: str
    endereco: str = Field(..., min_length=1, max_length=255)
    numero: str = Field(..., min_length=1, max_length=20)
    complemento: str | None = Field(None, max_length=255)
    bairro: str = Field(..., min_length=1, max_length=120)
    cidade: str = Field(..., min_length=1, max_length=120)

    @field_validator("cep")
    @classmethod
    def validate_cep(cls, v: str) -> str:
        return normalize_cep(v)


# === Agendamentos ===


class SchedulingCreate(AddressFields):
    """Schema para criar agendamento."""

    cliente_nome: str = Field(..., min_length=2, max_length=255)
    cliente_telefone: str
    produto_id: int
    quantidade: int = Field(..., ge=1)
    plataforma: Plataforma
    status: SchedulingStatus = SchedulingStatus.AGENDAR
    data_agendamento: datetime

    @field_validator("cliente_telefone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)


class SchedulingUpdate(PartialUpdate):
    """Atualização parcial de agendamento."""

    nullable_fields = frozenset({"complemento"})

    cliente_nome: str | None = Field(None, min_length=2, max_length=255)
    cliente_telefone: str | None = None
    cep: str | None = None
    endereco: str | None = Field(None, min_length=1, max_length=255)
    numero: str | None = Field(None, min_length=1, max_length=20)
    complemento: str | None = Field(None, max_length=255)
    bairro: str | None = Field(None, min_length=1, max_length=120)
    cidade: str | None = Field(None, min_length=1, max_length=120)
    produto_id: int | None = None
    quantidade: int | None = Field(None, ge=1)
    plataforma: Plataforma | None = None
    status: SchedulingStatus | None = None
    data_agendamento: datetime | None = None

    @field_validator("cep")
    @classmethod
    def validate_cep(cls, v: str | None) -> str | None:
        return normalize_cep(v) if v is not None else v

    @field_validator("cliente_telefone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v is not None else v


class SchedulingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cliente_nome: str
    cliente_telefone: str
    cep: str
    endereco: str
    numero: str
    complemento: str | None = None
    bairro: str
    cidade: str
    produto_id: int
    produto_nome: str | None = None
    quantidade: int
    plataforma: Plataforma
    status: SchedulingStatus
    data_agendamento: datetime
    created_at: datetime | None = None


class SchedulingBoard(BaseModel):
    """Quadro kanban: uma coluna por status."""

    agendar: list[SchedulingOut]
    agendado: list[SchedulingOut]


class WhatsappLinkOut(BaseModel):
    message: str
    url: str


# === Pré-agendamentos ===


class PreSchedulingCreate(AddressFields):
    """Schema para criar pré-agendamento."""

    cliente_nome: str = Field(..., min_length=2, max_length=255)
    cliente_whatsapp: str
    produto_id: int
    quantidade: int = Field(..., ge=1)
    plataforma: Plataforma
    data_prevista: datetime

    @field_validator("cliente_whatsapp")
    @classmethod
    def validate_whatsapp(cls, v: str) -> str:
        return normalize_phone(v)


class PreSchedulingUpdate(PartialUpdate):
    cliente_nome: str | None = Field(None, min_length=2, max_length=255)
    quantidade: int | None = Field(None, ge=1)
    plataforma: Plataforma | None = None
    data_prevista: datetime | None = None
    status: PreSchedulingStatus | None = None


class PreSchedulingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cliente_nome: str
    cliente_whatsapp: str
    cep: str
    endereco: str
    numero: str
    complemento: str | None = None
    bairro: str
    cidade: str
    produto_id: int
    produto_nome: str | None = None
    quantidade: int
    plataforma: Plataforma
    data_prevista: datetime
    status: PreSchedulingStatus
    created_at: datetime | None = None


# === Vendas ===


class SaleCreate(BaseModel):
    """Venda lançada manualmente."""

    cliente_nome: str = Field(..., min_length=2, max_length=255)
    cliente_telefone: str
    endereco: str | None = Field(None, max_length=500)
    produto_id: int
    plataforma: Plataforma
    quantidade: int = Field(..., ge=1)
    valor_total: float = Field(..., ge=0)
    comissao: float = Field(..., ge=0)

    @field_validator("cliente_telefone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)


class SaleUpdate(PartialUpdate):
    nullable_fields = frozenset({"endereco"})

    cliente_nome: str | None = Field(None, min_length=2, max_length=255)
    endereco: str | None = Field(None, max_length=500)
    quantidade: int | None = Field(None, ge=1)
    valor_total: float | None = Field(None, ge=0)
    comissao: float | None = Field(None, ge=0)


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cliente_nome: str
    cliente_telefone: str
    endereco: str | None = None
    produto_id: int
    produto_nome: str | None = None
    plataforma: Plataforma
    quantidade: int
    valor_total: float
    comissao: float
    status: SaleStatus
    agendamento_id: int | None = None
    created_at: datetime | None = None


class SaleListResponse(Page):
    items: list[SaleOut]


# === Faturamento ===


class MonthlyBilling(BaseModel):
    """Faturamento de um mês."""

    id: str  # MM/YYYY
    mes: str  # Outubro/2026
    valor_total: float
    comissao_total: float
    quantidade_pedidos: int


class BillingSummary(BaseModel):
    valor_total: float
    comissao_total: float
    quantidade_vendas: int
    agendamentos_pendentes: int
    agendamentos_confirmados: int
    pre_agendamentos_pendentes: int


# === Planos ===


class PlanPermissions(BaseModel):
    """Limites do plano (-1 = ilimitado)."""

    max_products: int = Field(1, ge=-1)
    max_schedulings_per_month: int = Field(10, ge=-1)
    max_pre_schedulings_per_month: int = Field(20, ge=-1)
    max_whatsapp_confirmations_per_month: int = Field(0, ge=-1)
    can_export_excel: bool = False
    can_view_analytics: bool = False
    can_use_cep_checker: bool = False


class PlanBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    price: float = Field(..., ge=0)
    checkout_url: str = "#"
    features: list[str] = Field(default_factory=list)
    permissions: PlanPermissions = Field(default_factory=PlanPermissions)
    popular: bool = False
    active: bool = True


class PlanCreate(PlanBase):
    id: str = Field(..., min_length=2, max_length=64, pattern=r"^[a-z0-9_-]+$")


class PlanOut(PlanBase):
    id: str


# === Usuários ===


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str
    nome: str
    email: str
    foto_perfil: str | None = None
    plan: str
    active: bool
    role: UserRole
    access_expires_at: datetime | None = None
    whatsapp_message_template: str | None = None
    created_at: datetime | None = None


class ProfileUpdate(BaseModel):
    nome: str | None = Field(None, min_length=2, max_length=255)
    foto_perfil: str | None = Field(None, max_length=500)
    whatsapp_message_template: str | None = Field(None, min_length=10, max_length=1000)


class AdminUserUpdate(BaseModel):
    plan: str | None = Field(None, max_length=64)
    role: UserRole | None = None
    active: bool | None = None
    access_expires_at: datetime | None = None


class UserListResponse(Page):
    items: list[UserOut]


class RankingEntry(BaseModel):
    uid: str
    nome: str
    email: str
    total_faturamento: float
    total_comissao: float
    total_vendas: int


class ApprovedEmailCreate(BaseModel):
    email: EmailStr
    plan: str = Field(..., min_length=2, max_length=64)


class ApprovedEmailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    plan: str
    created_at: datetime | None = None


class ActivityLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_uid: str | None = None
    actor_nome: str | None = None
    actor_email: str | None = None
    actor_role: str
    action: str
    target_type: str | None = None
    target_id: str | None = None
    target_name: str | None = None
    details: dict | None = None
    created_at: datetime | None = None


# === Avisos ===


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    content: str = Field(..., min_length=1)
    target_plan: str = Field("all", max_length=64)
    is_active: bool = True
    expires_at: datetime | None = None


class AnnouncementUpdate(BaseModel):
    title: str | None = Field(None, min_length=2, max_length=255)
    content: str | None = Field(None, min_length=1)
    target_plan: str | None = Field(None, max_length=64)
    is_active: bool | None = None
    expires_at: datetime | None = None


class AnnouncementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    target_plan: str
    is_active: bool
    expires_at: datetime | None = None
    created_at: datetime | None = None


# === Suporte ===


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=3, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


class TicketMessageCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)


class TicketStatusUpdate(BaseModel):
    status: TicketStatus


class TicketMessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: str
    sender_name: str
    sender_role: UserRole
    message: str
    created_at: datetime | None = None


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    user_name: str
    user_email: str
    subject: str
    status: TicketStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TicketDetailOut(TicketOut):
    messages: list[TicketMessageOut] = []


# === CEP ===


class CepVerifyRequest(BaseModel):
    cep: str
    product_id: int

    @field_validator("cep")
    @classmethod
    def validate_cep(cls, v: str) -> str:
        return normalize_cep(v)


class CepAddress(BaseModel):
    cep: str
    logradouro: str | None = None
    complemento: str | None = None
    bairro: str | None = None
    localidade: str
    uf: str


class CepVerifyResponse(BaseModel):
    available: bool
    message: str
    address: CepAddress | None = None


class CepSearchResponse(BaseModel):
    cep: str
    address: CepAddress


class CoveredRegionOut(BaseModel):
    state: str
    cities: list[str]


# === Webhook ===


class WebhookAck(BaseModel):
    success: bool = True
    plan: str | None = None


# === Health Check ===


class HealthResponse(BaseModel):
    """Response do health check."""

    status: str
    db: bool
    version: str = "1.0.0"
