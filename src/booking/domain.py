"""
Доменная модель контекста бронирования.

Содержит календарь объекта размещения (30 дней), бронирования гостей
и агрегат Property, который следит за тем, чтобы дни не бронировались дважды.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

from shared_kernel import (
    BusinessRuleValidationException,
    DomainEvent,
    EntityId,
    EntityNotFoundException,
    ErrorCode,
    GuestTier,
    PropertyType,
    generate_id,
    now,
)

from .pricing import DefaultPriceStrategy, RateQuote, final_nightly_rate

if TYPE_CHECKING:
    from .interfaces import IPriceStrategy


class CalendarPolicy:
    """Политики и константы календаря и ценообразования."""

    HORIZON_DAYS = 30
    MIN_BASE_PRICE = 100.0
    MIN_MODIFIER = 0.80
    MAX_MODIFIER = 1.20
    DEFAULT_MODIFIER = 1.0
    REDUCED_IMPACT_MAX = 0.89
    INCREASED_IMPACT_MIN = 1.01

    @classmethod
    def days(cls) -> range:
        """Все дни календаря, с 1 по HORIZON_DAYS включительно."""
        return range(1, cls.HORIZON_DAYS + 1)

    @classmethod
    def is_valid_day(cls, day: int) -> bool:
        return 1 <= day <= cls.HORIZON_DAYS

    @classmethod
    def clamp_modifier(cls, value: float) -> float:
        return max(cls.MIN_MODIFIER, min(cls.MAX_MODIFIER, value))

    @classmethod
    def validate_stay(cls, check_in: int, check_out: int) -> None:
        """Проверяет границы периода проживания [check_in, check_out)."""
        if check_in < 1 or check_out > cls.HORIZON_DAYS or check_in >= check_out:
            raise InvalidDayRangeException(
                f"Некорректный период проживания: {check_in}-{check_out} "
                f"(допустимо 1 <= заезд < выезд <= {cls.HORIZON_DAYS})"
            )

        # Граничные дни календаря
        if check_out == 1:
            raise BoundaryDayException("Нельзя выехать в первый день календаря")
        if check_in == cls.HORIZON_DAYS:
            raise BoundaryDayException("Нельзя заехать в последний день календаря")

    @classmethod
    def validate_day_range(cls, start_day: int, end_day: int) -> None:
        """Проверяет включительный диапазон дней [start_day, end_day]."""
        if start_day < 1 or end_day > cls.HORIZON_DAYS or start_day > end_day:
            raise InvalidDayRangeException(
                f"Некорректный диапазон дней: {start_day}-{end_day}"
            )

    @classmethod
    def validate_modifier(cls, modifier: float) -> None:
        # NaN не проходит ни одно сравнение и отклоняется
        if not cls.MIN_MODIFIER <= modifier <= cls.MAX_MODIFIER:
            raise InvalidModifierException(
                f"Модификатор {modifier} вне диапазона "
                f"[{cls.MIN_MODIFIER:.2f}, {cls.MAX_MODIFIER:.2f}]"
            )

    @classmethod
    def validate_base_price(cls, base_price: float) -> None:
        if not math.isfinite(base_price) or base_price < cls.MIN_BASE_PRICE:
            raise BasePriceTooLowException(
                f"Базовая цена должна быть конечным числом "
                f"не меньше {cls.MIN_BASE_PRICE:.2f}"
            )


class ImpactLevel(str, Enum):
    """
    Уровень экологического влияния дня (для отображения календаря).

    REDUCED для модификаторов 0.80..0.89, INCREASED для 1.01..1.20,
    остальные значения (включая 0.90..0.99) считаются стандартными.
    """

    REDUCED = "reduced"
    STANDARD = "standard"
    INCREASED = "increased"

    @classmethod
    def for_modifier(cls, modifier: float) -> "ImpactLevel":
        if CalendarPolicy.MIN_MODIFIER <= modifier <= CalendarPolicy.REDUCED_IMPACT_MAX:
            return cls.REDUCED
        if CalendarPolicy.INCREASED_IMPACT_MIN <= modifier <= CalendarPolicy.MAX_MODIFIER:
            return cls.INCREASED
        return cls.STANDARD


# Исключения контекста бронирования


class InvalidDayRangeException(BusinessRuleValidationException):
    """Дни вне календаря или пустой/перевернутый диапазон."""

    error_code = ErrorCode.INVALID_DAY_RANGE


class BoundaryDayException(BusinessRuleValidationException):
    """Выезд в первый день или заезд в последний день календаря."""

    error_code = ErrorCode.BOUNDARY_DAY


class InvalidModifierException(BusinessRuleValidationException):
    error_code = ErrorCode.INVALID_MODIFIER


class BasePriceTooLowException(BusinessRuleValidationException):
    error_code = ErrorCode.BASE_PRICE_TOO_LOW


class ReservationConflictException(BusinessRuleValidationException):
    """Период пересекается с существующим бронированием."""

    error_code = ErrorCode.RESERVATION_CONFLICT


class ActiveReservationsException(BusinessRuleValidationException):
    """Операция запрещена, пока у объекта есть бронирования."""

    error_code = ErrorCode.ACTIVE_RESERVATIONS


class DuplicatePropertyNameException(BusinessRuleValidationException):
    error_code = ErrorCode.DUPLICATE_PROPERTY_NAME


class PropertyNotFoundException(EntityNotFoundException):
    error_code = ErrorCode.PROPERTY_NOT_FOUND


class ReservationNotFoundException(EntityNotFoundException):
    error_code = ErrorCode.RESERVATION_NOT_FOUND


# Доменные события


class ReservationCreated(DomainEvent):
    """Событие создания бронирования."""

    property_id: EntityId
    property_name: str
    reservation_id: EntityId
    guest_name: str
    check_in: int
    check_out: int
    total_price: float


class ReservationCancelled(DomainEvent):
    """Событие отмены бронирования."""

    property_id: EntityId
    property_name: str
    reservation_id: EntityId
    guest_name: str
    check_in: int
    check_out: int


class Reservation(BaseModel):
    """
    Бронирование гостя.

    Хранит тарифы каждой ночи до и после скидки. Итоговая сумма
    всегда вычисляется из тарифов после скидки и отдельно не хранится.
    """

    model_config = ConfigDict(frozen=True)

    id: EntityId = Field(default_factory=generate_id)
    guest_name: str = Field(..., min_length=1)
    tier: GuestTier = GuestTier.REGULAR
    check_in: int = Field(..., ge=1, le=CalendarPolicy.HORIZON_DAYS)  # включительно
    check_out: int = Field(..., ge=1, le=CalendarPolicy.HORIZON_DAYS)  # не включительно
    nightly_rates: Tuple[float, ...]
    discounted_rates: Tuple[float, ...]
    created_at: datetime = Field(default_factory=now)

    @model_validator(mode="after")
    def nights_match_rates(self) -> "Reservation":
        if self.check_in >= self.check_out:
            raise ValueError("День выезда должен быть позже дня заезда")
        nights = self.check_out - self.check_in
        if len(self.nightly_rates) != nights or len(self.discounted_rates) != nights:
            raise ValueError(
                f"Ожидалось {nights} ночных тарифов, "
                f"получено {len(self.nightly_rates)}/{len(self.discounted_rates)}"
            )
        return self

    @classmethod
    def create(
        cls, guest_name: str, check_in: int, check_out: int, quote: RateQuote
    ) -> "Reservation":
        """Создает бронирование по готовому расчету стоимости."""
        return cls(
            guest_name=guest_name,
            tier=quote.tier,
            check_in=check_in,
            check_out=check_out,
            nightly_rates=quote.nightly_rates,
            discounted_rates=quote.discounted_rates,
        )

    @property
    def nights(self) -> int:
        return self.check_out - self.check_in

    @property
    def total_price(self) -> float:
        return sum(self.discounted_rates)

    @property
    def subtotal(self) -> float:
        """Сумма до скидки."""
        return sum(self.nightly_rates)

    @property
    def discount_amount(self) -> float:
        return self.subtotal - self.total_price

    def covers(self, day: int) -> bool:
        """Входит ли ночь day в период проживания."""
        return self.check_in <= day < self.check_out

    def overlaps(self, check_in: int, check_out: int) -> bool:
        """Пересекается ли полуинтервал [check_in, check_out) с бронированием."""
        return check_in < self.check_out and check_out > self.check_in

    def rate_for_day(self, day: int, discounted: bool = True) -> float:
        """Тариф за ночь day, либо 0.0, если ночь не входит в бронирование."""
        if not self.covers(day):
            return 0.0
        rates = self.discounted_rates if discounted else self.nightly_rates
        return rates[day - self.check_in]

    def __str__(self) -> str:
        return (
            f"Reservation for {self.guest_name} | Check-in: Day {self.check_in} "
            f"| Check-out: Day {self.check_out} | Nights: {self.nights} "
            f"| Total: {self.total_price:.2f}"
        )


class CalendarSlot(BaseModel):
    """Один день календаря объекта: состояние брони и экологический модификатор."""

    model_config = ConfigDict(validate_assignment=True)

    day: int = Field(..., ge=1, le=CalendarPolicy.HORIZON_DAYS, frozen=True)
    modifier: float = CalendarPolicy.DEFAULT_MODIFIER
    # Обратная ссылка на бронирование; владеет бронированием Property, а не день
    _reservation: Optional[Reservation] = PrivateAttr(default=None)

    @field_validator("modifier", mode="before")
    @classmethod
    def clamp_modifier(cls, v):
        return CalendarPolicy.clamp_modifier(float(v))

    @property
    def is_booked(self) -> bool:
        return self._reservation is not None

    @property
    def reservation(self) -> Optional[Reservation]:
        return self._reservation

    @property
    def guest_name(self) -> Optional[str]:
        """Имя гостя, занявшего день, если день забронирован."""
        if self._reservation is None:
            return None
        return self._reservation.guest_name

    @property
    def impact_level(self) -> ImpactLevel:
        return ImpactLevel.for_modifier(self.modifier)

    def is_available(self) -> bool:
        return not self.is_booked

    def book(self, reservation: Reservation) -> bool:
        """
        Бронирует день для указанного бронирования.

        Returns:
            True, если день был свободен; False, если уже занят (состояние не меняется)
        """
        if self.is_booked:
            return False
        self._reservation = reservation
        return True

    def cancel(self) -> None:
        """Освобождает день. Повторный вызов безопасен."""
        self._reservation = None

    def set_modifier(self, value: float) -> None:
        """Устанавливает модификатор; значение вне диапазона прижимается к границе."""
        self.modifier = value

    def reset_modifier(self) -> None:
        self.modifier = CalendarPolicy.DEFAULT_MODIFIER

    def describe(self) -> str:
        if self._reservation is not None:
            return f"Day {self.day} - BOOKED ({self._reservation.guest_name})"
        return f"Day {self.day} - AVAILABLE"


def _new_calendar() -> List[CalendarSlot]:
    return [CalendarSlot(day=day) for day in CalendarPolicy.days()]


class Property(BaseModel):
    """
    Объект размещения - корень агрегата.

    Владеет календарем из 30 дней и списком бронирований. Любое изменение
    календаря проходит через методы агрегата, снаружи доступны только копии.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: EntityId = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1)
    base_price: float = Field(..., ge=CalendarPolicy.MIN_BASE_PRICE)
    property_type: PropertyType = PropertyType.ECO_APARTMENT
    _slots: List[CalendarSlot] = PrivateAttr(default_factory=_new_calendar)
    _reservations: List[Reservation] = PrivateAttr(default_factory=list)
    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @classmethod
    def create(
        cls,
        name: str,
        base_price: float,
        property_type: PropertyType = PropertyType.ECO_APARTMENT,
    ) -> "Property":
        """Создает новый объект с пустым календарем."""
        name = name.strip()
        if not name:
            raise BusinessRuleValidationException("Название объекта не может быть пустым")
        CalendarPolicy.validate_base_price(base_price)
        return cls(name=name, base_price=base_price, property_type=property_type)

    # --- Доменные события ---

    def pull_domain_events(self) -> List[DomainEvent]:
        """Возвращает накопленные события и очищает их список."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    # --- Запросы ---

    @property
    def type_multiplier(self) -> float:
        return self.property_type.multiplier

    @property
    def type_name(self) -> str:
        return self.property_type.display_name

    @property
    def slots(self) -> Tuple[CalendarSlot, ...]:
        """Копии дней календаря; изменение копий не влияет на объект."""
        return tuple(slot.model_copy() for slot in self._slots)

    @property
    def reservations(self) -> Tuple[Reservation, ...]:
        return tuple(self._reservations)

    @property
    def reservation_count(self) -> int:
        return len(self._reservations)

    @property
    def total_earnings(self) -> float:
        return sum(reservation.total_price for reservation in self._reservations)

    def get_slot(self, day: int) -> CalendarSlot:
        """Возвращает копию дня календаря."""
        if not CalendarPolicy.is_valid_day(day):
            raise InvalidDayRangeException(f"День {day} вне календаря")
        return self._slots[day - 1].model_copy()

    def find_reservation(self, reservation_id: EntityId) -> Optional[Reservation]:
        for reservation in self._reservations:
            if reservation.id == reservation_id:
                return reservation
        return None

    def final_daily_rate(self, day: int) -> float:
        """Тариф ночи до скидки: базовая цена * множитель типа * модификатор дня."""
        if not CalendarPolicy.is_valid_day(day):
            return 0.0
        slot = self._slots[day - 1]
        return final_nightly_rate(self.base_price, self.type_multiplier, slot.modifier)

    def impact_level(self, day: int) -> ImpactLevel:
        if not CalendarPolicy.is_valid_day(day):
            return ImpactLevel.STANDARD
        return self._slots[day - 1].impact_level

    def count_available_days(self) -> int:
        return sum(1 for slot in self._slots if slot.is_available())

    def count_available_days_in_range(self, start_day: int, end_day: int) -> int:
        """Свободные дни в диапазоне [start_day, end_day]; границы прижимаются к календарю."""
        return sum(1 for slot in self._clamped_range(start_day, end_day) if slot.is_available())

    def count_booked_days_in_range(self, start_day: int, end_day: int) -> int:
        """Занятые дни в диапазоне [start_day, end_day]; границы прижимаются к календарю."""
        return sum(1 for slot in self._clamped_range(start_day, end_day) if slot.is_booked)

    def is_stay_available(self, check_in: int, check_out: int) -> bool:
        """Свободны ли все ночи [check_in, check_out)."""
        if check_in < 1 or check_out > CalendarPolicy.HORIZON_DAYS or check_in >= check_out:
            return False
        return all(slot.is_available() for slot in self._stay_slots(check_in, check_out))

    def can_be_removed(self) -> bool:
        return not self._reservations

    def ensure_can_be_removed(self) -> None:
        if not self.can_be_removed():
            raise ActiveReservationsException(
                f"Объект '{self.name}' имеет активные бронирования "
                f"({len(self._reservations)}) и не может быть удален"
            )

    # --- Бронирования ---

    def validate_stay(self, check_in: int, check_out: int) -> None:
        """
        Проверяет, можно ли разместить бронирование.

        Порядок проверок: границы периода, граничные дни, пересечения.
        Первая неудачная проверка прерывает остальные.
        """
        CalendarPolicy.validate_stay(check_in, check_out)

        for reservation in self._reservations:
            if reservation.overlaps(check_in, check_out):
                raise ReservationConflictException(
                    f"Период {check_in}-{check_out} пересекается с бронированием "
                    f"{reservation.guest_name} ({reservation.check_in}-{reservation.check_out})"
                )

    def commit_reservation(
        self,
        guest_name: str,
        tier: GuestTier,
        check_in: int,
        check_out: int,
        price_strategy: Optional["IPriceStrategy"] = None,
    ) -> Reservation:
        """
        Проверяет период, рассчитывает стоимость и фиксирует бронирование.

        Операция атомарна: либо заняты все ночи и бронирование сохранено,
        либо состояние объекта не изменилось.
        """
        self.validate_stay(check_in, check_out)

        strategy = price_strategy or DefaultPriceStrategy()
        nightly_rates = strategy.calculate_nightly_rates(self, check_in, check_out)
        quote = RateQuote.from_nightly_rates(nightly_rates, tier)
        reservation = Reservation.create(guest_name, check_in, check_out, quote)

        booked: List[CalendarSlot] = []
        for slot in self._stay_slots(check_in, check_out):
            if not slot.book(reservation):
                for booked_slot in booked:
                    booked_slot.cancel()
                raise ReservationConflictException(f"День {slot.day} уже забронирован")
            booked.append(slot)

        self._reservations.append(reservation)
        self._domain_events.append(
            ReservationCreated(
                property_id=self.id,
                property_name=self.name,
                reservation_id=reservation.id,
                guest_name=reservation.guest_name,
                check_in=reservation.check_in,
                check_out=reservation.check_out,
                total_price=reservation.total_price,
            )
        )
        return reservation

    def remove_reservation(self, reservation_id: EntityId) -> Reservation:
        """Отменяет бронирование и освобождает его дни."""
        reservation = self.find_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFoundException(
                f"Бронирование {reservation_id} не найдено у объекта '{self.name}'"
            )

        for slot in self._stay_slots(reservation.check_in, reservation.check_out):
            slot.cancel()
        self._reservations.remove(reservation)

        self._domain_events.append(
            ReservationCancelled(
                property_id=self.id,
                property_name=self.name,
                reservation_id=reservation.id,
                guest_name=reservation.guest_name,
                check_in=reservation.check_in,
                check_out=reservation.check_out,
            )
        )
        return reservation

    # --- Изменение объекта ---

    def rename(self, new_name: str) -> None:
        """Меняет название. Уникальность проверяет справочник объектов."""
        new_name = new_name.strip()
        if not new_name:
            raise BusinessRuleValidationException("Название объекта не может быть пустым")
        self.name = new_name

    def update_base_price(self, new_price: float) -> None:
        """Меняет базовую цену; разрешено только без бронирований."""
        CalendarPolicy.validate_base_price(new_price)
        if self._reservations:
            raise ActiveReservationsException(
                "Нельзя менять базовую цену, пока у объекта есть бронирования"
            )
        self.base_price = new_price

    def set_environmental_modifier(
        self, start_day: int, modifier: float, end_day: Optional[int] = None
    ) -> None:
        """Устанавливает модификатор для дня или диапазона [start_day, end_day]."""
        end_day = start_day if end_day is None else end_day
        CalendarPolicy.validate_day_range(start_day, end_day)
        CalendarPolicy.validate_modifier(modifier)

        for slot in self._slots[start_day - 1 : end_day]:
            slot.set_modifier(modifier)

    def reset_environmental_modifier(
        self, start_day: int, end_day: Optional[int] = None
    ) -> None:
        """Возвращает стандартный модификатор 1.0 для дня или диапазона."""
        end_day = start_day if end_day is None else end_day
        CalendarPolicy.validate_day_range(start_day, end_day)

        for slot in self._slots[start_day - 1 : end_day]:
            slot.reset_modifier()

    # --- Внутренние помощники ---

    def _stay_slots(self, check_in: int, check_out: int) -> Iterator[CalendarSlot]:
        """Дни календаря для ночей [check_in, check_out)."""
        return iter(self._slots[check_in - 1 : check_out - 1])

    def _clamped_range(self, start_day: int, end_day: int) -> List[CalendarSlot]:
        start_day = max(start_day, 1)
        end_day = min(end_day, CalendarPolicy.HORIZON_DAYS)
        if start_day > end_day:
            return []
        return self._slots[start_day - 1 : end_day]
