# common/result.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, cast

T = TypeVar("T")
E = TypeVar("E")

_VAZIO = object()


@dataclass(frozen=True, slots=True)
class Result(Generic[T, E]):
    """
    Sucesso (``Result.ok``) ou falha (``Result.err``) explícitos.

    Usado pelo roteador e pelo cliente Printful para que o caminho de erro
    apareça na assinatura em vez de viajar como exceção.
    """

    _value: object = _VAZIO
    _error: object = _VAZIO

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        return cls(_value=value)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        return cls(_error=error)

    @property
    def is_ok(self) -> bool:
        return self._error is _VAZIO

    @property
    def is_err(self) -> bool:
        return not self.is_ok

    @property
    def value(self) -> T:
        if self.is_err:
            raise ValueError("Called value on Result.err")
        return cast(T, self._value)

    @property
    def error(self) -> E:
        if self.is_ok:
            raise ValueError("Called error on Result.ok")
        return cast(E, self._error)
