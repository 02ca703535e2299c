"""
Общее ядро (Shared Kernel) для системы аренды эко-жилья.

Содержит общие типы данных и утилиты, используемые в контексте бронирования.
"""

from .domain import (
    BusinessRuleValidationException,
    DomainEvent,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    EntityNotFoundException,
    ErrorCode,
    # Перечисления
    GuestTier,
    PropertyType,
    generate_id,
    # Утилиты
    now,
)

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_id",
    "DomainEvent",
    # Перечисления
    "GuestTier",
    "PropertyType",
    "ErrorCode",
    # Исключения
    "DomainException",
    "BusinessRuleValidationException",
    "EntityNotFoundException",
    # Утилиты
    "now",
]
