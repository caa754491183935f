"""Router para vendas."""

import logging
from datetime import datetime
from math import ceil

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..models import Sale
from ..schemas import SaleCreate, SaleListResponse, SaleOut, SaleStatus, SaleUpdate
from ..services.activity import ActivityService
from .auth import Store
from .products import get_owned_product

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def get_owned_sale(store, sale_id: int) -> Sale:
    sale = store.get(Sale, sale_id)
    if not sale:
        raise HTTPException(status_code=404, detail="Venda não encontrada")
    return sale


@router.post("/", response_model=SaleOut, status_code=201)
@limiter.limit("60/minute")
def create_sale(request: Request, payload: SaleCreate, store: Store):
    """Lança uma venda manualmente (status Pago)."""
    product = get_owned_product(store, payload.produto_id)

    data = payload.model_dump()
    data["plataforma"] = payload.plataforma.value
    sale = Sale(
        user_id=store.uid,
        produto_nome=product.nome,
        status=SaleStatus.PAGO.value,
        **data,
    )
    store.db.add(sale)
    store.db.commit()
    store.db.refresh(sale)

    logger.info(f"Venda criada: {sale.id} ({store.uid})")
    return sale


@router.get("/", response_model=SaleListResponse)
def list_sales(
    store: Store,
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    start: datetime | None = Query(None, description="Data inicial (inclusive)"),
    end: datetime | None = Query(None, description="Data final (inclusive)"),
):
    """Lista vendas, as mais recentes primeiro."""
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="Período inválido")

    query = store.query(Sale)
    if start:
        query = query.filter(Sale.created_at >= start)
    if end:
        query = query.filter(Sale.created_at <= end)

    total = query.count()
    offset = (page - 1) * page_size
    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).offset(offset).limit(page_size).all()

    return SaleListResponse(
        items=sales,
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: int, store: Store):
    return get_owned_sale(store, sale_id)


@router.put("/{sale_id}", response_model=SaleOut)
def update_sale(sale_id: int, payload: SaleUpdate, store: Store):
    """Corrige dados de uma venda."""
    sale = get_owned_sale(store, sale_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(sale, field, value)
    store.db.commit()
    store.db.refresh(sale)
    return sale


@router.delete("/{sale_id}")
def delete_sale(sale_id: int, store: Store):
    sale = get_owned_sale(store, sale_id)
    cliente_nome = sale.cliente_nome
    store.db.delete(sale)
    store.db.commit()

    ActivityService(store.db).log(
        "sale.deleted",
        actor=store.actor,
        target_type="sale",
        target_id=sale_id,
        target_name=cliente_nome,
    )
    logger.info(f"Venda removida: {sale_id}")
    return {"message": "Venda removida com sucesso", "id": sale_id}
