"""Consulta de CEP (ViaCEP) e cobertura de pagamento na entrega."""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from ..config import settings
from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoveredRegion:
    state: str
    cities: tuple[str, ...]


# Cidades em minúsculo e sem acento
COVERED_REGIONS: tuple[CoveredRegion, ...] = (
    CoveredRegion("Acre – AC", ()),
    CoveredRegion("Alagoas – AL", ()),
    CoveredRegion("Amapá – AP", ()),
    CoveredRegion("Amazonas – AM", ()),
    CoveredRegion("Bahia – BA", ("salvador", "lauro de freitas", "simoes filho", "camacari")),
    CoveredRegion(
        "Ceará – CE",
        ("fortaleza", "caucaia", "maracanau", "eusebio", "pacatuba", "maranguape"),
    ),
    CoveredRegion("Distrito Federal – DF", ()),
    CoveredRegion("Espírito Santo – ES", ()),
    CoveredRegion(
        "Goiás – GO",
        ("goiania", "senador canedo", "aparecida de goiania", "trindade", "goianira"),
    ),
    CoveredRegion("Maranhão – MA", ()),
    CoveredRegion("Mato Grosso – MT", ()),
    CoveredRegion("Mato Grosso do Sul – MS", ()),
    CoveredRegion(
        "Minas Gerais – MG",
        (
            "nova lima", "sarzedo", "belo horizonte", "contagem", "betim",
            "ribeirao das neves", "sabara", "ibirite", "santa luzia",
        ),
    ),
    CoveredRegion("Pará – PA", ()),
    CoveredRegion("Paraíba – PB", ()),
    CoveredRegion("Paraná – PR", ()),
    CoveredRegion(
        "Pernambuco – PE",
        ("recife", "olinda", "jaboatao dos guararapes", "camaragibe", "paulista", "abreu e lima"),
    ),
    CoveredRegion("Piauí – PI", ()),
    CoveredRegion(
        "Rio de Janeiro – RJ",
        (
            "duque de caxias", "niteroi", "sao joao de meriti", "nilopolis", "rio de janeiro",
            "mesquita", "nova iguacu", "sao goncalo", "queimados",
        ),
    ),
    CoveredRegion("Rio Grande do Norte – RN", ()),
    CoveredRegion(
        "Rio Grande do Sul – RS",
        (
            "porto alegre", "canoas", "esteio", "sao leopoldo", "novo hamburgo", "gravatai",
            "sapucaia do sul", "viamao", "cachoeirinha", "alvorada",
        ),
    ),
    CoveredRegion("Rondônia – RO", ()),
    CoveredRegion("Roraima – RR", ()),
    CoveredRegion("Santa Catarina – SC", ()),
    CoveredRegion(
        "São Paulo – SP",
        (
            "sao paulo", "taboao da serra", "sao bernardo do campo", "osasco", "guarulhos",
            "diadema", "santo andre", "itapecerica da serra", "carapicuiba", "itaquaquecetuba",
            "barueri", "maua", "ferraz de vasconcelos", "sao caetano do sul", "suzano", "cotia",
            "embu das artes", "poa", "itapevi", "jandira", "mogi das cruzes", "santos",
            "cubatao", "sao vicente", "guaruja",
        ),
    ),
    CoveredRegion("Sergipe – SE", ()),
    CoveredRegion("Tocantins – TO", ()),
)


def normalize_city_name(city: str) -> str:
    """Minúsculo e sem acentos, para comparar nomes de cidade."""
    c = unicodedata.normalize("NFKD", (city or "").strip())
    c = "".join(ch for ch in c if not unicodedata.combining(ch))
    return " ".join(c.lower().split())


def _client() -> httpx.Client:
    return httpx.Client(base_url=settings.viacep_base_url, timeout=settings.viacep_timeout)


def lookup_cep(cep: str) -> Optional[dict]:
    """Consulta um CEP. Retorna None quando o ViaCEP não conhece o CEP."""
    try:
        with _client() as client:
            resp = client.get(f"/ws/{cep}/json/")
    except httpx.HTTPError as exc:
        logger.warning(f"ViaCEP indisponível ({cep}): {exc}")
        raise ExternalServiceError("Não foi possível consultar o CEP.") from exc

    if resp.status_code == 400:
        return None
    if resp.status_code >= 400:
        raise ExternalServiceError("Não foi possível consultar o CEP.")

    data = resp.json()
    if data.get("erro"):
        return None
    return data


def search_cep(uf: str, cidade: str, logradouro: str) -> Optional[dict]:
    """Busca o CEP de um endereço. Retorna o primeiro resultado ou None."""
    path = f"/ws/{quote(uf.upper())}/{quote(cidade)}/{quote(logradouro)}/json/"
    try:
        with _client() as client:
            resp = client.get(path)
    except httpx.HTTPError as exc:
        logger.warning(f"ViaCEP indisponível ({uf}/{cidade}): {exc}")
        raise ExternalServiceError("Erro na comunicação com a API de CEP.") from exc

    if resp.status_code >= 400:
        raise ExternalServiceError("Erro na comunicação com a API de CEP.")

    results = resp.json()
    if isinstance(results, list) and results and results[0].get("cep"):
        return results[0]
    return None


def is_city_covered(covered_cities: list[str], city: str) -> bool:
    wanted = normalize_city_name(city)
    return any(normalize_city_name(c) == wanted for c in covered_cities or [])
