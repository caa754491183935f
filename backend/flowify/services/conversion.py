"""Conversão de agendamento em venda.

Fluxo:
1) Busca o produto do agendamento no catálogo do usuário
2) Resolve preço/comissão pela plataforma e quantidade
3) Numa única transação: cria a venda e remove o agendamento

As etapas 1 e 2 só leem; se falharem o agendamento fica intacto.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from ..errors import PriceNotFound, ProductNotFound, SchedulingNotFound
from ..models import PriceCommission, Product, Sale, Scheduling, utc_now
from .activity import ActivityService
from .store import AtomicHandle, TenantStore

logger = logging.getLogger(__name__)

SALE_STATUS_PAGO = "Pago"


def resolve_price(
    precos: Iterable[PriceCommission],
    plataforma: str,
    quantidade: int,
) -> PriceCommission:
    """Encontra a entrada de preço para plataforma + quantidade.

    Sem entrada exata, usa a primeira da mesma plataforma (qualquer quantidade).
    """
    precos = list(precos)
    exact = next(
        (p for p in precos if p.plataforma == plataforma and p.quantidade == quantidade),
        None,
    )
    if exact is not None:
        return exact

    fallback = next((p for p in precos if p.plataforma == plataforma), None)
    if fallback is None:
        raise PriceNotFound(plataforma, quantidade)
    return fallback


def compose_address(scheduling: Scheduling) -> str:
    """Endereço completo da venda: rua, número, bairro, cidade."""
    return f"{scheduling.endereco}, {scheduling.numero}, {scheduling.bairro}, {scheduling.cidade}"


class ConversionService:
    """Converte agendamentos do usuário em vendas."""

    def __init__(self, store: TenantStore):
        self.store = store

    def convert(self, scheduling_id: int) -> Sale:
        """Converte o agendamento e retorna a venda criada (com id)."""
        store = self.store
        scheduling = store.get(Scheduling, scheduling_id)
        if scheduling is None:
            raise SchedulingNotFound(scheduling_id, self._existing_sale_id(scheduling_id))

        product = store.get(Product, scheduling.produto_id)
        if product is None:
            logger.warning(
                f"Conversão do agendamento {scheduling_id}: produto {scheduling.produto_id} "
                f"não existe para {store.uid}"
            )
            raise ProductNotFound(scheduling.produto_id)

        try:
            price = resolve_price(product.precos_comissoes, scheduling.plataforma, scheduling.quantidade)
        except PriceNotFound:
            logger.warning(
                f"Conversão do agendamento {scheduling_id}: sem preço para "
                f"{scheduling.plataforma} no produto {product.id}"
            )
            raise

        sale_data = {
            "cliente_nome": scheduling.cliente_nome,
            "cliente_telefone": scheduling.cliente_telefone,
            "endereco": compose_address(scheduling),
            "produto_id": scheduling.produto_id,
            "produto_nome": scheduling.produto_nome,
            "plataforma": scheduling.plataforma,
            "quantidade": scheduling.quantidade,
            "valor_total": price.preco,
            "comissao": price.comissao,
        }

        def replace_with_sale(tx: AtomicHandle) -> Sale:
            # Outra conversão pode ter removido o agendamento depois da leitura acima
            current = tx.read(Scheduling, scheduling_id)
            if current is None:
                raise SchedulingNotFound(scheduling_id, self._existing_sale_id(scheduling_id))

            sale = tx.create(
                Sale(
                    **sale_data,
                    status=SALE_STATUS_PAGO,
                    agendamento_id=scheduling_id,
                    created_at=utc_now(),
                )
            )
            tx.delete(current)
            ActivityService(tx.db).log(
                "sale.converted",
                actor=store.actor,
                target_type="sale",
                target_id=sale.id,
                target_name=sale.cliente_nome,
                details={"agendamento_id": scheduling_id, "valor_total": sale.valor_total},
                commit=False,
            )
            return sale

        sale = store.run_atomic(replace_with_sale)

        logger.info(
            f"Agendamento {scheduling_id} convertido na venda {sale.id} "
            f"(usuário {store.uid}, valor {sale.valor_total})"
        )
        return sale

    def _existing_sale_id(self, scheduling_id: int) -> Optional[int]:
        sale = self.store.query(Sale).filter(Sale.agendamento_id == scheduling_id).first()
        return sale.id if sale else None


def convert_scheduling_to_sale(store: TenantStore, scheduling_id: int) -> Sale:
    """Atalho funcional para ``ConversionService(store).convert``."""
    return ConversionService(store).convert(scheduling_id)
