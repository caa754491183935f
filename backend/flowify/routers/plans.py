"""Router do catálogo público de planos."""

from fastapi import APIRouter

from ..database import DbSession
from ..models import Plan
from ..schemas import PlanCreate, PlanOut, PlanPermissions

router = APIRouter()

PERMISSION_FIELDS = tuple(PlanPermissions.model_fields)


def plan_to_out(plan: Plan) -> PlanOut:
    return PlanOut(
        id=plan.id,
        name=plan.name,
        price=plan.price,
        checkout_url=plan.checkout_url,
        features=list(plan.features or []),
        permissions=PlanPermissions(**{f: getattr(plan, f) for f in PERMISSION_FIELDS}),
        popular=bool(plan.popular),
        active=bool(plan.active),
    )


def apply_plan_payload(plan: Plan, payload: PlanCreate) -> Plan:
    plan.name = payload.name
    plan.price = payload.price
    plan.checkout_url = payload.checkout_url
    plan.features = list(payload.features)
    plan.popular = payload.popular
    plan.active = payload.active
    for field, value in payload.permissions.model_dump().items():
        setattr(plan, field, value)
    return plan


@router.get("/", response_model=list[PlanOut])
def list_plans(db: DbSession):
    """Planos ativos, do mais barato ao mais caro."""
    plans = db.query(Plan).filter(Plan.active == True).order_by(Plan.price, Plan.id).all()
    return [plan_to_out(p) for p in plans]
