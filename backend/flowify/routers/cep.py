"""Router da ferramenta de CEP."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..schemas import (
    CepAddress,
    CepSearchResponse,
    CepVerifyRequest,
    CepVerifyResponse,
    CoveredRegionOut,
)
from ..services.cep import COVERED_REGIONS, is_city_covered, lookup_cep, search_cep
from ..services.plan_limits import can_use_cep_checker, enforce
from .auth import Actor, Store
from .products import get_owned_product

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _address(data: dict) -> CepAddress:
    return CepAddress(
        cep=data.get("cep", ""),
        logradouro=data.get("logradouro") or None,
        complemento=data.get("complemento") or None,
        bairro=data.get("bairro") or None,
        localidade=data.get("localidade", ""),
        uf=data.get("uf", ""),
    )


@router.post("/verify", response_model=CepVerifyResponse)
@limiter.limit("30/minute")
def verify_cep(request: Request, payload: CepVerifyRequest, store: Store):
    """Verifica se o produto atende o CEP informado."""
    enforce(can_use_cep_checker(store.db, store.actor))
    product = get_owned_product(store, payload.product_id)

    data = lookup_cep(payload.cep)
    if data is None:
        raise HTTPException(status_code=404, detail="CEP não encontrado")

    address = _address(data)
    if is_city_covered(product.covered_cities, address.localidade):
        message = f"Entrega disponível em {address.localidade}/{address.uf} para {product.nome}."
        available = True
    else:
        message = f"{product.nome} não atende {address.localidade}/{address.uf}."
        available = False

    logger.info(f"CEP {payload.cep} verificado para produto {product.id}: {available}")
    return CepVerifyResponse(available=available, message=message, address=address)


@router.get("/search", response_model=CepSearchResponse)
@limiter.limit("30/minute")
def search_cep_by_address(
    request: Request,
    store: Store,
    uf: str = Query(..., min_length=2, max_length=2, description="Sigla do estado"),
    cidade: str = Query(..., min_length=2),
    logradouro: str = Query(..., min_length=3),
):
    """Busca o CEP de um endereço."""
    enforce(can_use_cep_checker(store.db, store.actor))

    data = search_cep(uf, cidade, logradouro)
    if data is None:
        raise HTTPException(status_code=404, detail="Nenhum CEP encontrado para o endereço informado")
    return CepSearchResponse(cep=data["cep"], address=_address(data))


@router.get("/covered-regions", response_model=list[CoveredRegionOut])
def covered_regions(actor: Actor):
    return [CoveredRegionOut(state=r.state, cities=list(r.cities)) for r in COVERED_REGIONS]
