"""
Инфраструктурный слой контекста бронирования.

Содержит реализации репозиториев и других интерфейсов. Все данные
хранятся в памяти процесса.
"""

import json
import sys
from typing import Callable, Dict, List, Optional, Type

from shared_kernel import DomainEvent, EntityId

from . import interfaces as ports
from .domain import (
    DuplicatePropertyNameException,
    Property,
    PropertyNotFoundException,
)


def _name_key(name: str) -> str:
    return name.strip().lower()


class InMemoryPropertyRepository(ports.IPropertyRepository):
    """Справочник объектов размещения в памяти (в порядке добавления)."""

    def __init__(self) -> None:
        self._properties: Dict[EntityId, Property] = {}

    def add(self, property: Property) -> None:
        if property.id in self._properties:
            raise ValueError(f"Property with id {property.id} already exists")
        if not self.is_unique_name(property.name):
            raise DuplicatePropertyNameException(
                f"Объект с названием '{property.name}' уже существует"
            )
        self._properties[property.id] = property

    def get_by_name(self, name: str) -> Optional[Property]:
        key = _name_key(name)
        for property in self._properties.values():
            if _name_key(property.name) == key:
                return property
        return None

    def list_all(self) -> List[Property]:
        return list(self._properties.values())

    def is_unique_name(self, name: str) -> bool:
        return self.get_by_name(name) is None

    def rename(self, old_name: str, new_name: str) -> Property:
        if not self.is_unique_name(new_name):
            raise DuplicatePropertyNameException(
                f"Объект с названием '{new_name}' уже существует"
            )
        property = self._get_existing(old_name)
        property.rename(new_name)
        return property

    def remove(self, name: str) -> Property:
        property = self._get_existing(name)
        property.ensure_can_be_removed()
        del self._properties[property.id]
        return property

    def _get_existing(self, name: str) -> Property:
        property = self.get_by_name(name)
        if property is None:
            raise PropertyNotFoundException(f"Объект '{name}' не найден")
        return property


class ConsoleLogger(ports.ILogger):
    """Простая реализация логгера, выводящая сообщения в консоль."""

    def __init__(self, verbose: bool = False):
        self._verbose = verbose

    def info(self, message: str, **kwargs) -> None:
        self._write("INFO", message, sys.stdout, kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._write("ERROR", message, sys.stderr, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._write("WARNING", message, sys.stderr, kwargs)

    def debug(self, message: str, **kwargs) -> None:
        if self._verbose:
            self._write("DEBUG", message, sys.stdout, kwargs)

    def _write(self, level: str, message: str, stream, context: dict) -> None:
        print(f"[{level}] {message}", file=stream, flush=True)
        if context:
            print(
                "  Context:",
                json.dumps(context, default=str, indent=2, ensure_ascii=False),
                file=stream,
                flush=True,
            )


class InMemoryEventBus(ports.IEventBus):
    """Реализация шины событий в памяти."""

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._subscribers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._logger = logger or ConsoleLogger()

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие."""
        event_type = type(event)
        if event_type not in self._subscribers:
            self._logger.debug(f"No subscribers for event type {event_type.__name__}")
            return

        self._logger.info(
            f"Publishing event: {event_type.__name__}", event=event.model_dump()
        )

        for handler in self._subscribers[event_type]:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error in event handler for {event_type.__name__}",
                    error=str(e),
                    event=event.model_dump(),
                )

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable) -> None:
        """Подписывает обработчик на события указанного типа."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        self._logger.debug(f"Subscribed handler to {event_type.__name__} events")
