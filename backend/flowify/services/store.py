"""Acesso aos dados de um tenant.

Toda leitura e escrita passa pelo uid do ator; nenhum registro de outro
usuário é visível por aqui.
"""

import logging
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import FlowifyError, NotAuthenticated, TransactionFailure
from .auth import ActorContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AtomicHandle:
    """Operações disponíveis dentro de ``TenantStore.run_atomic``.

    Nada é visível fora da transação até o commit.
    """

    def __init__(self, db: Session, uid: str):
        self.db = db
        self.uid = uid

    def read(self, model: type, record_id: Any, for_update: bool = True) -> Optional[Any]:
        query = self.db.query(model).filter(model.id == record_id, model.user_id == self.uid)
        if for_update:
            query = query.with_for_update()
        # populate_existing: a leitura precisa refletir o banco, não o identity map
        return query.populate_existing().first()

    def create(self, row: Any) -> Any:
        row.user_id = self.uid
        self.db.add(row)
        self.db.flush()
        return row

    def delete(self, row: Any) -> None:
        if row.user_id != self.uid:
            raise FlowifyError("Registro pertence a outro usuário.")
        self.db.delete(row)
        self.db.flush()


class TenantStore:
    """Coleções por usuário (produtos, agendamentos, vendas, ...)."""

    def __init__(self, db: Session, actor: Optional[ActorContext]):
        if actor is None:
            raise NotAuthenticated()
        self.db = db
        self.actor = actor

    @property
    def uid(self) -> str:
        return self.actor.uid

    def query(self, model: type):
        return self.db.query(model).filter(model.user_id == self.uid)

    def get(self, model: type, record_id: Any) -> Optional[Any]:
        return self.query(model).filter(model.id == record_id).first()

    def run_atomic(self, fn: Callable[[AtomicHandle], T]) -> T:
        """Executa ``fn`` numa única transação e faz commit.

        Erros de domínio levantados por ``fn`` desfazem a transação e são
        repassados. Erros de banco viram ``TransactionFailure``; se o erro
        acontecer no commit o resultado é incerto (``ambiguous=True``).
        """
        try:
            self._apply_timeout()
            result = fn(AtomicHandle(self.db, self.uid))
        except FlowifyError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Transação abortada para {self.uid}: {exc}")
            raise TransactionFailure() from exc

        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Falha no commit para {self.uid}: {exc}")
            raise TransactionFailure(
                "Não foi possível confirmar a operação. Verifique antes de tentar novamente.",
                ambiguous=True,
            ) from exc
        return result

    def _apply_timeout(self) -> None:
        if self.db.get_bind().dialect.name != "postgresql":
            return
        timeout_ms = int(settings.conversion_timeout_ms)
        self.db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
