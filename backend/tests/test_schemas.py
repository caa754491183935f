"""Testes para schemas Pydantic."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from flowify.schemas import (
    CepVerifyRequest,
    PlanCreate,
    ProductCreate,
    ProfileUpdate,
    SchedulingCreate,
    normalize_cep,
    normalize_phone,
)


def _scheduling_payload(**overrides):
    data = {
        "cliente_nome": "Carla Souza",
        "cliente_telefone": "(11) 98765-4321",
        "cep": "01310-100",
        "endereco": "Av. Paulista",
        "numero": "1000",
        "bairro": "Bela Vista",
        "cidade": "São Paulo",
        "produto_id": 1,
        "quantidade": 1,
        "plataforma": "Hyppe",
        "data_agendamento": datetime(2026, 10, 20, 14, 0),
    }
    data.update(overrides)
    return data


class TestNormalizers:
    """Testes para normalização de CEP e telefone."""

    def test_cep_with_mask(self):
        assert normalize_cep("01310-100") == "01310100"

    def test_cep_invalid(self):
        with pytest.raises(ValueError):
            normalize_cep("1234")

    def test_phone_keeps_digits(self):
        assert normalize_phone("+55 (11) 98765-4321") == "5511987654321"

    def test_phone_too_short(self):
        with pytest.raises(ValueError):
            normalize_phone("98765")


class TestSchedulingCreate:
    """Testes para schema de criação de agendamento."""

    def test_valid(self):
        req = SchedulingCreate(**_scheduling_payload())
        assert req.cep == "01310100"
        assert req.cliente_telefone == "11987654321"
        assert req.status.value == "Agendar"

    def test_unknown_platform(self):
        with pytest.raises(ValidationError):
            SchedulingCreate(**_scheduling_payload(plataforma="Correios"))

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            SchedulingCreate(**_scheduling_payload(quantidade=0))

    def test_invalid_cep(self):
        with pytest.raises(ValidationError):
            SchedulingCreate(**_scheduling_payload(cep="123"))


class TestProductCreate:
    def test_requires_price_list(self):
        with pytest.raises(ValidationError):
            ProductCreate(nome="Kit", precos_comissoes=[])

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            ProductCreate(
                nome="Kit",
                precos_comissoes=[{"plataforma": "Hyppe", "quantidade": 1, "preco": -1, "comissao": 0}],
            )


class TestPlanCreate:
    def test_id_pattern(self):
        with pytest.raises(ValidationError):
            PlanCreate(id="Plano Novo", name="Plano Novo", price=10)

    def test_default_permissions(self):
        plan = PlanCreate(id="novo", name="Plano Novo", price=10)
        assert plan.permissions.max_products == 1
        assert plan.permissions.can_use_cep_checker is False

    def test_unlimited_is_minus_one(self):
        with pytest.raises(ValidationError):
            PlanCreate(id="novo", name="Plano Novo", price=10, permissions={"max_products": -2})


class TestOtherSchemas:
    def test_whatsapp_template_min_length(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(whatsapp_message_template="oi")

    def test_cep_verify_normalizes(self):
        assert CepVerifyRequest(cep="01310-100", product_id=1).cep == "01310100"
