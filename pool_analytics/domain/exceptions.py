from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""


class DecimalArithmeticError(DomainError, ArithmeticError):
    """Operacao numerica invalida (divisao por zero, valor nao finito)."""


class EmptyPoolError(DecimalArithmeticError):
    """Pool sem liquidez utilizavel no lado base."""


class NotFoundError(DomainError):
    """Recurso desconhecido pelo provedor."""


class PoolNotFoundError(NotFoundError):
    """Pool solicitada nao existe."""


class TokenPairNotFoundError(NotFoundError):
    """Nenhuma pool negocia o par solicitado."""


class UnavailableError(DomainError):
    """Dependencia externa temporariamente indisponivel."""


class PriceUnavailableError(UnavailableError):
    """Nao foi possivel obter o preco de referencia em USD."""


class SnapshotUnavailableError(UnavailableError):
    """Nao foi possivel ler o snapshot da pool."""


class InvalidInputError(DomainError):
    """Parametros ou dados de entrada invalidos."""


class InvalidAddressError(InvalidInputError):
    """Endereco de pool ou token malformado."""


class InvalidSnapshotError(InvalidInputError):
    """Snapshot com reservas, decimais ou preco de referencia invalidos."""


class ConfigurationError(DomainError):
    """Registro de handlers inconsistente."""


class QueryCancelledError(DomainError):
    """Consulta cancelada pelo chamador."""
