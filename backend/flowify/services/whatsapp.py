"""Mensagem de confirmação de entrega via WhatsApp."""

from urllib.parse import quote

from ..models import Scheduling
from .auth import as_utc

DEFAULT_TEMPLATE = (
    "Olá {cliente}, tudo bem? Sua entrega do produto {produto} (x{quantidade}) "
    "está agendada para o dia {data}. Por favor, confirme o endereço: {endereco}. Obrigado!"
)

WHATSAPP_SEND_URL = "https://api.whatsapp.com/send"


def delivery_address(scheduling: Scheduling) -> str:
    return f"{scheduling.endereco}, {scheduling.numero} - {scheduling.bairro}, {scheduling.cidade}"


def render_message(scheduling: Scheduling, template: str | None = None) -> str:
    """Preenche os marcadores {cliente}, {produto}, {quantidade}, {data} e {endereco}."""
    data = as_utc(scheduling.data_agendamento)
    values = {
        "{cliente}": scheduling.cliente_nome,
        "{produto}": scheduling.produto_nome or "",
        "{quantidade}": str(scheduling.quantidade),
        "{data}": data.strftime("%d/%m/%Y") if data else "",
        "{endereco}": delivery_address(scheduling),
    }
    message = template or DEFAULT_TEMPLATE
    for placeholder, value in values.items():
        message = message.replace(placeholder, value)
    return message


def whatsapp_phone(phone: str) -> str:
    """Telefone no formato internacional; números nacionais recebem o DDI 55."""
    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) in (10, 11):
        return f"55{digits}"
    return digits


def build_link(phone: str, message: str) -> str:
    return f"{WHATSAPP_SEND_URL}?phone={whatsapp_phone(phone)}&text={quote(message)}"
