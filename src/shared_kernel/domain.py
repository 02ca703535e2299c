"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# Общие типы идентификаторов
EntityId = UUID


def generate_id() -> UUID:
    """Генерирует новый UUID."""
    return uuid4()


def now() -> datetime:
    """Возвращает текущую дату и время (UTC)."""
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=now)

    @property
    def event_type(self) -> str:
        """Тип события - имя его класса."""
        return type(self).__name__


# Общие перечисления
class GuestTier(str, Enum):
    """Уровни программы лояльности гостя."""

    REGULAR = "regular"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"

    @property
    def discount(self) -> float:
        """Доля скидки на ночь (например, 0.05 для 5%)."""
        return _TIER_DISCOUNTS[self]

    @property
    def label(self) -> str:
        return f"{self.name.capitalize()} ({round(self.discount * 100)}%)"


_TIER_DISCOUNTS = {
    GuestTier.REGULAR: 0.0,
    GuestTier.SILVER: 0.05,
    GuestTier.GOLD: 0.10,
    GuestTier.PLATINUM: 0.15,
}


class PropertyType(str, Enum):
    """Типы объектов размещения."""

    ECO_APARTMENT = "eco_apartment"
    SUSTAINABLE_HOUSE = "sustainable_house"
    GREEN_RESORT = "green_resort"
    ECO_GLAMPING = "eco_glamping"

    @property
    def multiplier(self) -> float:
        """Множитель цены, фиксированный для типа объекта."""
        return _PROPERTY_TYPE_TABLE[self][1]

    @property
    def display_name(self) -> str:
        return _PROPERTY_TYPE_TABLE[self][0]

    @classmethod
    def from_selector(cls, selector: int) -> "PropertyType":
        """
        Возвращает тип по числовому селектору из меню (1..4).

        Raises:
            ValueError: если селектор вне диапазона
        """
        types = list(cls)
        if not 1 <= selector <= len(types):
            raise ValueError(f"Неизвестный тип объекта: {selector}")
        return types[selector - 1]


# (отображаемое имя, множитель)
_PROPERTY_TYPE_TABLE = {
    PropertyType.ECO_APARTMENT: ("Eco-Apartment", 1.00),
    PropertyType.SUSTAINABLE_HOUSE: ("Sustainable House", 1.20),
    PropertyType.GREEN_RESORT: ("Green Resort", 1.35),
    PropertyType.ECO_GLAMPING: ("Eco-Glamping", 1.50),
}


class ErrorCode(str, Enum):
    """Коды ошибок, которые видит вызывающая сторона."""

    INVALID_INPUT = "invalid_input"
    INVALID_DAY_RANGE = "invalid_day_range"
    BOUNDARY_DAY = "boundary_day"
    INVALID_MODIFIER = "invalid_modifier"
    BASE_PRICE_TOO_LOW = "base_price_too_low"
    DUPLICATE_PROPERTY_NAME = "duplicate_property_name"
    RESERVATION_CONFLICT = "reservation_conflict"
    ACTIVE_RESERVATIONS = "active_reservations"
    PROPERTY_NOT_FOUND = "property_not_found"
    RESERVATION_NOT_FOUND = "reservation_not_found"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    error_code: ErrorCode = ErrorCode.INVALID_INPUT


class BusinessRuleValidationException(DomainException):
    """Исключение при нарушении бизнес-правил."""

    pass


class EntityNotFoundException(DomainException):
    """Исключение: сущность не найдена."""

    pass
