"""Erros de domínio do FlowiFy.

Cada erro carrega a mensagem exibida ao usuário e o status HTTP usado pelo
handler registrado em ``main.py``.
"""


class FlowifyError(Exception):
    """Erro base da aplicação."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(FlowifyError):
    status_code = 401

    def __init__(self, message: str = "Usuário não autenticado."):
        super().__init__(message)


class PermissionDenied(FlowifyError):
    status_code = 403

    def __init__(self, message: str = "Permissão negada."):
        super().__init__(message)


class PlanLimitReached(FlowifyError):
    """O plano do usuário não permite a ação."""

    status_code = 403


class NotFound(FlowifyError):
    status_code = 404


class ProductNotFound(NotFound):
    """Produto referenciado não existe no catálogo do usuário."""

    def __init__(self, product_id: int | None = None):
        super().__init__("Produto associado ao agendamento não encontrado.")
        self.product_id = product_id


class SchedulingNotFound(NotFound):
    """Agendamento não existe (removido ou já convertido em venda).

    Quando já existe uma venda gerada a partir do agendamento, ``sale_id`` traz
    o id dela e o status passa a ser 409.
    """

    def __init__(self, scheduling_id: int, sale_id: int | None = None):
        if sale_id is not None:
            message = f"Agendamento {scheduling_id} já foi convertido na venda {sale_id}."
        else:
            message = "Agendamento não encontrado."
        super().__init__(message)
        self.scheduling_id = scheduling_id
        self.sale_id = sale_id
        if sale_id is not None:
            self.status_code = 409


class PriceNotFound(FlowifyError):
    """Nenhuma entrada de preço para a plataforma do agendamento."""

    status_code = 422

    def __init__(self, plataforma: str, quantidade: int):
        super().__init__(
            f"Preço para a plataforma {plataforma} e quantidade {quantidade} não encontrado."
        )
        self.plataforma = plataforma
        self.quantidade = quantidade


class TransactionFailure(FlowifyError):
    """A etapa atômica não foi confirmada.

    ``ambiguous`` indica falha durante o commit: a transação pode ter sido
    gravada mesmo assim, e o estado deve ser consultado antes de repetir.
    """

    status_code = 503

    def __init__(self, message: str = "Falha ao gravar a operação. Tente novamente.", ambiguous: bool = False):
        super().__init__(message)
        self.ambiguous = ambiguous


class ExternalServiceError(FlowifyError):
    status_code = 502
