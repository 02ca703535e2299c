"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Type, TypeVar

from shared_kernel import DomainEvent

from .domain import Property

T_Event = TypeVar("T_Event", bound=DomainEvent)


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IPriceStrategy(Protocol):
    """Стратегия расчета ночных тарифов (до скидки гостя)."""

    def calculate_nightly_rates(
        self, property: Property, check_in: int, check_out: int
    ) -> List[float]: ...


class IPropertyRepository(Protocol):
    """
    Справочник объектов размещения.

    Названия уникальны без учета регистра.
    """

    def add(self, property: Property) -> None: ...
    def get_by_name(self, name: str) -> Optional[Property]: ...
    def list_all(self) -> List[Property]: ...
    def is_unique_name(self, name: str) -> bool: ...
    def rename(self, old_name: str, new_name: str) -> Property: ...
    def remove(self, name: str) -> Property: ...
