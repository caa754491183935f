"""Webhook de compra da Kirvano."""

import logging
import secrets

from fastapi import APIRouter, Header, HTTPException, Request

from ..config import settings
from ..database import DbSession
from ..models import ApprovedEmail, User
from ..schemas import WebhookAck
from ..services.activity import ActivityService

logger = logging.getLogger(__name__)
router = APIRouter()


def plan_for_product(product_name: str) -> str:
    """Mapeia o nome do produto comprado para o id do plano."""
    name = product_name.lower()
    if "chefe" in name:
        return "intermediario"
    if "bigode" in name:
        return "bigode"
    return "iniciante"


@router.post("/kirvano", response_model=WebhookAck)
async def kirvano_webhook(
    request: Request,
    db: DbSession,
    x_kirvano_token: str | None = Header(None),
):
    """Aprova o e-mail do comprador para o plano adquirido."""
    expected = settings.kirvano_webhook_token
    if expected and not secrets.compare_digest(x_kirvano_token or "", expected):
        raise HTTPException(status_code=401, detail="Token do webhook inválido")

    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Payload inválido")

    customer = body.get("customer") if isinstance(body, dict) else None
    product = body.get("product") if isinstance(body, dict) else None
    email = customer.get("email") if isinstance(customer, dict) else None
    product_name = product.get("name") if isinstance(product, dict) else None

    if not email or not product_name:
        raise HTTPException(status_code=400, detail="Campos obrigatórios ausentes: email ou nome do produto")

    email = str(email).strip().lower()
    plan_id = plan_for_product(str(product_name))

    db.add(ApprovedEmail(email=email, plan=plan_id))

    user = db.query(User).filter(User.email == email).first()
    if user:
        user.plan = plan_id
        user.active = True
    db.commit()

    ActivityService(db).log(
        "webhook.purchase_approved",
        target_type="approved_email",
        target_id=user.uid if user else None,
        target_name=email,
        details={"plan": plan_id, "product": str(product_name)},
    )
    logger.info(f"E-mail {email} aprovado para o plano {plan_id}")
    return WebhookAck(success=True, plan=plan_id)
