"""Testes da conversão agendamento -> venda."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import auth_headers, make_scheduling
from flowify.errors import (
    NotAuthenticated,
    PriceNotFound,
    ProductNotFound,
    SchedulingNotFound,
    TransactionFailure,
)
from flowify.models import ActivityLog, PriceCommission, Product, Sale, Scheduling
from flowify.services.auth import ActorContext
from flowify.services.conversion import (
    ConversionService,
    compose_address,
    convert_scheduling_to_sale,
    resolve_price,
)
from flowify.services.store import TenantStore


def _price(plataforma, quantidade, preco, comissao=10.0):
    return PriceCommission(plataforma=plataforma, quantidade=quantidade, preco=preco, comissao=comissao)


class TestResolvePrice:
    """Resolução de preço por plataforma + quantidade."""

    def test_exact_match(self):
        precos = [_price("Hyppe", 1, 100.0), _price("Hyppe", 2, 180.0), _price("Logzz", 2, 170.0)]
        assert resolve_price(precos, "Hyppe", 2).preco == 180.0

    def test_fallback_first_entry_of_platform(self):
        precos = [_price("Logzz", 1, 90.0), _price("Hyppe", 1, 100.0), _price("Hyppe", 2, 180.0)]
        assert resolve_price(precos, "Hyppe", 5).preco == 100.0

    def test_exact_match_wins_over_list_order(self):
        precos = [_price("Hyppe", 1, 100.0), _price("Hyppe", 3, 250.0)]
        assert resolve_price(precos, "Hyppe", 3).preco == 250.0

    def test_duplicate_entries_first_wins(self):
        precos = [_price("Hyppe", 2, 180.0), _price("Hyppe", 2, 999.0)]
        assert resolve_price(precos, "Hyppe", 2).preco == 180.0

    def test_platform_without_entries(self):
        with pytest.raises(PriceNotFound) as exc:
            resolve_price([_price("Logzz", 1, 90.0)], "Hyppe", 1)
        assert "Hyppe" in exc.value.message
        assert exc.value.status_code == 422

    def test_empty_list(self):
        with pytest.raises(PriceNotFound):
            resolve_price([], "Hyppe", 1)


class TestComposeAddress:
    def test_format(self):
        scheduling = Scheduling(endereco="Rua A", numero="10", bairro="Centro", cidade="Osasco")
        assert compose_address(scheduling) == "Rua A, 10, Centro, Osasco"


class TestConversionService:
    """Conversão pelo serviço, sem HTTP."""

    def test_converts_and_removes_scheduling(self, db_session, actor, scheduling):
        scheduling_id = scheduling.id
        sale = ConversionService(TenantStore(db_session, actor)).convert(scheduling_id)

        assert sale.id is not None
        assert sale.user_id == actor.uid
        assert sale.cliente_nome == "Carla Souza"
        assert sale.cliente_telefone == "11987654321"
        assert sale.endereco == "Av. Paulista, 1000, Bela Vista, São Paulo"
        assert sale.produto_nome == "Kit Clareador"
        assert sale.plataforma == "Hyppe"
        assert sale.quantidade == 2
        assert sale.valor_total == 297.0
        assert sale.comissao == 90.0
        assert sale.status == "Pago"
        assert sale.agendamento_id == scheduling_id
        assert sale.created_at is not None

        assert db_session.get(Scheduling, scheduling_id) is None
        assert db_session.query(Sale).count() == 1

    def test_fallback_price_when_quantity_missing(self, db_session, user, actor, product):
        scheduling = make_scheduling(db_session, user, product, quantidade=7)
        sale = convert_scheduling_to_sale(TenantStore(db_session, actor), scheduling.id)

        assert sale.quantidade == 7
        assert sale.valor_total == 197.0
        assert sale.comissao == 60.0

    @pytest.mark.parametrize("status", ["Agendar", "Agendado"])
    def test_status_does_not_matter(self, db_session, user, actor, product, status):
        scheduling = make_scheduling(db_session, user, product, status=status)
        sale = convert_scheduling_to_sale(TenantStore(db_session, actor), scheduling.id)

        assert sale.valor_total == 297.0
        assert sale.comissao == 90.0

    def test_single_price_scenario(self, db_session, user, actor):
        product = Product(
            user_id=user.uid,
            nome="Produto 1",
            covered_cities=[],
            precos_comissoes=[PriceCommission(posicao=0, plataforma="Hyppe", quantidade=1, preco=100, comissao=10)],
        )
        db_session.add(product)
        db_session.commit()
        scheduling = make_scheduling(
            db_session, user, product,
            cliente_nome="Ana", quantidade=1,
            endereco="Rua A", numero="10", bairro="Centro", cidade="SP",
        )
        scheduling_id = scheduling.id

        sale = convert_scheduling_to_sale(TenantStore(db_session, actor), scheduling_id)

        assert (sale.valor_total, sale.comissao, sale.status, sale.cliente_nome) == (100, 10, "Pago", "Ana")
        assert sale.endereco == "Rua A, 10, Centro, SP"
        assert db_session.get(Scheduling, scheduling_id) is None

    def test_platform_absent_from_price_list(self, db_session, user, actor):
        product = Product(
            user_id=user.uid,
            nome="Só Hyppe",
            covered_cities=[],
            precos_comissoes=[
                PriceCommission(posicao=0, plataforma="Hyppe", quantidade=1, preco=100, comissao=10),
                PriceCommission(posicao=1, plataforma="Hyppe", quantidade=2, preco=180, comissao=20),
            ],
        )
        db_session.add(product)
        db_session.commit()
        scheduling = make_scheduling(db_session, user, product, plataforma="Logzz", quantidade=1)

        with pytest.raises(PriceNotFound):
            convert_scheduling_to_sale(TenantStore(db_session, actor), scheduling.id)

        assert db_session.get(Scheduling, scheduling.id).plataforma == "Logzz"
        assert db_session.query(Sale).count() == 0

    def test_writes_activity_log(self, db_session, actor, scheduling):
        sale = ConversionService(TenantStore(db_session, actor)).convert(scheduling.id)

        entry = db_session.query(ActivityLog).filter(ActivityLog.action == "sale.converted").one()
        assert entry.actor_uid == actor.uid
        assert entry.target_id == str(sale.id)

    def test_missing_product_leaves_scheduling(self, db_session, actor, product, scheduling):
        db_session.delete(product)
        db_session.commit()

        with pytest.raises(ProductNotFound):
            ConversionService(TenantStore(db_session, actor)).convert(scheduling.id)

        assert db_session.get(Scheduling, scheduling.id) is not None
        assert db_session.query(Sale).count() == 0

    def test_missing_price_leaves_scheduling(self, db_session, user, actor, product):
        scheduling = make_scheduling(db_session, user, product, plataforma="Braip")

        with pytest.raises(PriceNotFound):
            ConversionService(TenantStore(db_session, actor)).convert(scheduling.id)

        assert db_session.get(Scheduling, scheduling.id) is not None
        assert db_session.query(Sale).count() == 0

    def test_unknown_scheduling(self, db_session, actor, product):
        with pytest.raises(SchedulingNotFound) as exc:
            ConversionService(TenantStore(db_session, actor)).convert(9999)
        assert exc.value.sale_id is None
        assert exc.value.status_code == 404

    def test_second_conversion_points_to_existing_sale(self, db_session, actor, scheduling):
        service = ConversionService(TenantStore(db_session, actor))
        sale = service.convert(scheduling.id)

        with pytest.raises(SchedulingNotFound) as exc:
            service.convert(scheduling.id)
        assert exc.value.sale_id == sale.id
        assert exc.value.status_code == 409
        assert db_session.query(Sale).count() == 1

    def test_commit_failure_is_ambiguous_and_keeps_scheduling(self, db_session, actor, scheduling):
        scheduling_id = scheduling.id
        store = TenantStore(db_session, actor)
        error = OperationalError("COMMIT", {}, Exception("conexão perdida"))

        with patch.object(db_session, "commit", side_effect=error):
            with pytest.raises(TransactionFailure) as exc:
                ConversionService(store).convert(scheduling_id)

        assert exc.value.ambiguous is True
        assert db_session.get(Scheduling, scheduling_id) is not None
        assert db_session.query(Sale).count() == 0
        assert db_session.query(ActivityLog).count() == 0

    def test_failure_inside_transaction_is_not_ambiguous(self, db_session, actor, scheduling):
        error = OperationalError("INSERT", {}, Exception("timeout"))

        with patch.object(db_session, "flush", side_effect=error):
            with pytest.raises(TransactionFailure) as exc:
                ConversionService(TenantStore(db_session, actor)).convert(scheduling.id)

        assert exc.value.ambiguous is False
        assert db_session.get(Scheduling, scheduling.id) is not None

    def test_other_tenant_cannot_convert(self, db_session, other_user, scheduling):
        intruder = ActorContext.from_user(other_user)
        with pytest.raises(SchedulingNotFound):
            ConversionService(TenantStore(db_session, intruder)).convert(scheduling.id)

        assert db_session.get(Scheduling, scheduling.id) is not None

    def test_store_requires_actor(self, db_session):
        with pytest.raises(NotAuthenticated):
            TenantStore(db_session, None)


class TestConvertEndpoint:
    """POST /schedulings/{id}/convert."""

    def test_convert(self, client, headers, scheduling):
        response = client.post(f"/schedulings/{scheduling.id}/convert", headers=headers)

        assert response.status_code == 201
        data = response.json()
        assert data["valor_total"] == 297.0
        assert data["comissao"] == 90.0
        assert data["status"] == "Pago"
        assert data["agendamento_id"] == scheduling.id

        assert client.get(f"/schedulings/{scheduling.id}", headers=headers).status_code == 404
        sales = client.get("/sales/", headers=headers).json()
        assert sales["total"] == 1

    def test_convert_twice_returns_conflict(self, client, headers, scheduling):
        first = client.post(f"/schedulings/{scheduling.id}/convert", headers=headers)
        second = client.post(f"/schedulings/{scheduling.id}/convert", headers=headers)

        assert second.status_code == 409
        assert second.json()["sale_id"] == first.json()["id"]

    def test_new_scheduling_after_conversion(self, client, db_session, user, headers, product, scheduling):
        converted_id = scheduling.id
        first = client.post(f"/schedulings/{converted_id}/convert", headers=headers)
        assert first.status_code == 201

        novo = make_scheduling(db_session, user, product, cliente_nome="Diego Lima", quantidade=1)
        assert novo.id != converted_id

        second = client.post(f"/schedulings/{novo.id}/convert", headers=headers)
        assert second.status_code == 201
        assert second.json()["cliente_nome"] == "Diego Lima"
        assert second.json()["agendamento_id"] == novo.id
        assert db_session.query(Sale).count() == 2

    def test_convert_without_price(self, client, db_session, user, headers, product):
        scheduling = make_scheduling(db_session, user, product, plataforma="Braip")

        response = client.post(f"/schedulings/{scheduling.id}/convert", headers=headers)
        assert response.status_code == 422
        assert "Braip" in response.json()["detail"]

    def test_convert_without_product(self, client, db_session, headers, product, scheduling):
        db_session.delete(product)
        db_session.commit()

        response = client.post(f"/schedulings/{scheduling.id}/convert", headers=headers)
        assert response.status_code == 404
        assert "Produto" in response.json()["detail"]

    def test_convert_unknown(self, client, headers, product):
        response = client.post("/schedulings/9999/convert", headers=headers)
        assert response.status_code == 404

    def test_convert_other_tenant(self, client, other_user, scheduling):
        response = client.post(f"/schedulings/{scheduling.id}/convert", headers=auth_headers(other_user))
        assert response.status_code == 404

    def test_convert_requires_auth(self, client, scheduling):
        response = client.post(f"/schedulings/{scheduling.id}/convert")
        assert response.status_code == 401

    def test_convert_transaction_failure(self, client, db_session, headers, scheduling):
        error = OperationalError("COMMIT", {}, Exception("conexão perdida"))
        real_commit = db_session.commit
        calls = {"n": 0}

        def flaky_commit():
            # A resolução do ator não faz commit; o primeiro commit é o da conversão
            calls["n"] += 1
            if calls["n"] == 1:
                raise error
            return real_commit()

        with patch.object(db_session, "commit", side_effect=flaky_commit):
            response = client.post(f"/schedulings/{scheduling.id}/convert", headers=headers)

        assert response.status_code == 503
        assert response.json()["ambiguous"] is True
        assert db_session.get(Scheduling, scheduling.id) is not None
