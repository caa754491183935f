"""Router para o catálogo de produtos do usuário."""

import logging
from math import ceil

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..models import PriceCommission, Product
from ..schemas import PriceCommissionIn, ProductCreate, ProductListResponse, ProductOut, ProductUpdate
from ..services.cep import normalize_city_name
from ..services.plan_limits import can_add_product, enforce
from .auth import Store

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _price_rows(entries: list[PriceCommissionIn]) -> list[PriceCommission]:
    return [
        PriceCommission(
            posicao=i,
            plataforma=entry.plataforma.value,
            quantidade=entry.quantidade,
            preco=entry.preco,
            comissao=entry.comissao,
        )
        for i, entry in enumerate(entries)
    ]


def _normalize_cities(cities: list[str]) -> list[str]:
    seen = []
    for city in cities:
        name = normalize_city_name(city)
        if name and name not in seen:
            seen.append(name)
    return seen


def get_owned_product(store, product_id: int) -> Product:
    product = store.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return product


# === Endpoints ===


@router.post("/", response_model=ProductOut, status_code=201)
@limiter.limit("30/minute")
def create_product(request: Request, payload: ProductCreate, store: Store):
    """
    Cria um produto com sua tabela de preços/comissões.

    - **precos_comissoes**: lista de (plataforma, quantidade, preco, comissao)
    - **covered_cities**: cidades com entrega (normalizadas)
    """
    enforce(can_add_product(store.db, store.actor))

    product = Product(
        user_id=store.uid,
        nome=payload.nome,
        descricao=payload.descricao,
        covered_cities=_normalize_cities(payload.covered_cities),
        precos_comissoes=_price_rows(payload.precos_comissoes),
    )
    store.db.add(product)
    store.db.commit()
    store.db.refresh(product)

    logger.info(f"Produto criado: {product.id} - {product.nome} ({store.uid})")
    return product


@router.get("/", response_model=ProductListResponse)
def list_products(
    store: Store,
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    search: str | None = Query(None, description="Buscar por nome"),
):
    """Lista produtos do usuário com paginação."""
    query = store.query(Product)
    if search:
        query = query.filter(Product.nome.ilike(f"%{search}%"))

    total = query.count()
    offset = (page - 1) * page_size
    products = query.order_by(Product.nome).offset(offset).limit(page_size).all()

    return ProductListResponse(
        items=products,
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, store: Store):
    """Busca um produto pelo ID."""
    return get_owned_product(store, product_id)


@router.put("/{product_id}", response_model=ProductOut)
@limiter.limit("30/minute")
def update_product(request: Request, product_id: int, payload: ProductUpdate, store: Store):
    """
    Atualiza um produto existente.

    - Apenas campos fornecidos serão atualizados
    - **precos_comissoes**, quando enviado, substitui a tabela inteira
    """
    product = get_owned_product(store, product_id)

    update_data = payload.model_dump(exclude_unset=True, exclude={"precos_comissoes", "covered_cities"})
    for field, value in update_data.items():
        setattr(product, field, value)
    if payload.precos_comissoes is not None:
        product.precos_comissoes = _price_rows(payload.precos_comissoes)
    if payload.covered_cities is not None:
        product.covered_cities = _normalize_cities(payload.covered_cities)

    store.db.commit()
    store.db.refresh(product)

    logger.info(f"Produto atualizado: {product.id}")
    return product


@router.delete("/{product_id}")
@limiter.limit("10/minute")
def delete_product(request: Request, product_id: int, store: Store):
    """
    Remove um produto.

    Agendamentos que apontam para ele continuam existindo; a conversão deles
    em venda passa a falhar até que sejam corrigidos.
    """
    product = get_owned_product(store, product_id)
    store.db.delete(product)
    store.db.commit()

    logger.info(f"Produto removido: {product_id}")
    return {"message": "Produto removido com sucesso", "id": product_id}
