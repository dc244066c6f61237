"""Abstract base for feed adapters.

Feed adapters normalise raw records from the upstream reporting API into
the canonical domain models, so naming variance never reaches the engine.

Architectural rules:
    1. Adapters must NOT mutate the incoming record dict.
    2. adapt() must return a fully valid model or raise ValueError.
    3. No reconstruction or distribution logic lives inside an adapter —
       only field mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class FeedAdapter(ABC, Generic[ModelT]):
    """Base class for converting raw upstream records into canonical models."""

    @abstractmethod
    def can_handle(self, raw: dict[str, Any]) -> bool:
        """Return True if this adapter knows how to translate *raw*.

        Must be a fast, non-destructive check (e.g. key presence).
        """
        ...

    @abstractmethod
    def adapt(self, raw: dict[str, Any]) -> ModelT:
        """Translate a raw record into a validated model.

        The input dict must NOT be mutated.

        Raises:
            ValueError: If the record cannot be normalised.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Human-readable name of the upstream feed this adapter handles."""
        ...


def first_present(raw: dict[str, Any], *names: str, default: Any = None) -> Any:
    """Return the first value among *names* that is present and truthy."""
    for name in names:
        value = raw.get(name)
        if value not in (None, ""):
            return value
    return default
