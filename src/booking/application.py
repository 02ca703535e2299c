"""
Прикладной слой контекста бронирования.

Содержит сервисы приложения, которые координируют взаимодействие между
внешними интерфейсами (консоль, GUI) и доменной моделью. Сервисы не
выбрасывают исключений при некорректном вводе: результат операции
возвращается в виде OperationResult.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared_kernel import DomainException, EntityId, ErrorCode, GuestTier, PropertyType

from . import interfaces as ports
from .domain import (
    CalendarPolicy,
    CalendarSlot,
    ImpactLevel,
    Property,
    PropertyNotFoundException,
    Reservation,
)
from .infrastructure import ConsoleLogger
from .pricing import DefaultPriceStrategy

# DTO (Data Transfer Objects) для входящих данных


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Значение не может быть пустым")
    return value


class BookReservationRequest(BaseModel):
    """Запрос на бронирование объекта."""

    property_name: str
    guest_name: str
    tier: GuestTier = GuestTier.REGULAR
    check_in: int
    check_out: int

    @field_validator("property_name", "guest_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)


class CreatePropertyRequest(BaseModel):
    """Запрос на создание объекта размещения."""

    name: str
    base_price: float
    property_type: PropertyType = PropertyType.ECO_APARTMENT

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("property_type", mode="before")
    @classmethod
    def accept_menu_selector(cls, v: Any) -> Any:
        # Номер пункта меню (1..4) из консольного интерфейса
        if isinstance(v, int) and not isinstance(v, bool):
            return PropertyType.from_selector(v)
        return v


class UpdateBasePriceRequest(BaseModel):
    """Запрос на изменение базовой цены объекта."""

    property_name: str
    new_price: float


class SetModifierRequest(BaseModel):
    """Запрос на изменение экологического модификатора дня или диапазона дней."""

    property_name: str
    start_day: int
    end_day: Optional[int] = None
    modifier: float = CalendarPolicy.DEFAULT_MODIFIER


# DTO для исходящих данных


class ReservationDTO(BaseModel):
    """DTO для представления бронирования."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    guest_name: str
    tier: GuestTier
    tier_label: str
    check_in: int
    check_out: int
    nights: int
    nightly_rates: List[float]
    discounted_rates: List[float]
    subtotal: float
    total_price: float

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=reservation.id,
            guest_name=reservation.guest_name,
            tier=reservation.tier,
            tier_label=reservation.tier.label,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            nights=reservation.nights,
            nightly_rates=list(reservation.nightly_rates),
            discounted_rates=list(reservation.discounted_rates),
            subtotal=reservation.subtotal,
            total_price=reservation.total_price,
        )


class CalendarSlotDTO(BaseModel):
    """DTO для представления дня календаря."""

    model_config = ConfigDict(frozen=True)

    day: int
    modifier: float
    is_booked: bool
    impact_level: ImpactLevel
    guest_name: Optional[str]
    reservation_id: Optional[EntityId]

    @classmethod
    def from_domain(cls, slot: CalendarSlot) -> "CalendarSlotDTO":
        return cls(
            day=slot.day,
            modifier=slot.modifier,
            is_booked=slot.is_booked,
            impact_level=slot.impact_level,
            guest_name=slot.guest_name,
            reservation_id=slot.reservation.id if slot.reservation else None,
        )


class PropertyDTO(BaseModel):
    """DTO для представления объекта размещения."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str
    property_type: PropertyType
    type_name: str
    type_multiplier: float
    base_price: float
    reservation_count: int
    available_days: int
    total_earnings: float

    @classmethod
    def from_domain(cls, property: Property) -> "PropertyDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=property.id,
            name=property.name,
            property_type=property.property_type,
            type_name=property.type_name,
            type_multiplier=property.type_multiplier,
            base_price=property.base_price,
            reservation_count=property.reservation_count,
            available_days=property.count_available_days(),
            total_earnings=property.total_earnings,
        )


class AvailabilityDTO(BaseModel):
    """Сводка занятости объекта на диапазоне дней."""

    model_config = ConfigDict(frozen=True)

    property_name: str
    start_day: int
    end_day: int
    available_days: int
    booked_days: int


class OperationResult(BaseModel):
    """
    Результат операции прикладного слоя.

    Приводится к bool: True при успехе. При неудаче содержит код ошибки
    и сообщение; состояние системы при этом не изменяется.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    error_code: Optional[ErrorCode] = None
    message: str = ""
    reservation: Optional[ReservationDTO] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(
        cls, message: str = "", reservation: Optional[ReservationDTO] = None
    ) -> "OperationResult":
        return cls(success=True, message=message, reservation=reservation)

    @classmethod
    def failure(cls, error_code: ErrorCode, message: str) -> "OperationResult":
        return cls(success=False, error_code=error_code, message=message)

    @classmethod
    def from_exception(
        cls, error: Union[DomainException, ValidationError]
    ) -> "OperationResult":
        """Преобразует доменное исключение или ошибку валидации в отказ."""
        if isinstance(error, ValidationError):
            details = "; ".join(e["msg"] for e in error.errors())
            return cls.failure(ErrorCode.INVALID_INPUT, details)
        return cls.failure(error.error_code, str(error))


# Сервисы приложения


class _BaseApplicationService:
    """Общая часть сервисов: журналирование отказов и публикация событий."""

    def __init__(
        self,
        properties: ports.IPropertyRepository,
        event_bus: Optional[ports.IEventBus] = None,
        logger: Optional[ports.ILogger] = None,
    ):
        """Инициализирует сервис."""
        self._properties = properties
        self._event_bus = event_bus
        self._logger = logger or ConsoleLogger()

    def _get_property(self, name: str) -> Property:
        property = self._properties.get_by_name(name)
        if property is None:
            raise PropertyNotFoundException(f"Объект '{name}' не найден")
        return property

    def _reject(
        self, action: str, error: Union[DomainException, ValidationError], **context
    ) -> OperationResult:
        result = OperationResult.from_exception(error)
        self._logger.warning(
            f"{action}: отказ - {result.message}",
            error_code=result.error_code.value,
            **context,
        )
        return result

    def _publish_events(self, property: Property) -> None:
        # События забираются всегда, чтобы не копились в агрегате
        events = property.pull_domain_events()
        if self._event_bus is None:
            return
        for event in events:
            self._event_bus.publish(event)


class BookingEngine(_BaseApplicationService):
    """
    Сервис бронирования.

    Единственная точка создания бронирований: находит объект по названию,
    передает проверку периода и фиксацию агрегату Property и рассчитывает
    стоимость выбранной стратегией с учетом уровня гостя.
    """

    def __init__(
        self,
        properties: ports.IPropertyRepository,
        price_strategy: Optional[ports.IPriceStrategy] = None,
        event_bus: Optional[ports.IEventBus] = None,
        logger: Optional[ports.ILogger] = None,
    ):
        """Инициализирует сервис."""
        super().__init__(properties, event_bus=event_bus, logger=logger)
        self._price_strategy = price_strategy or DefaultPriceStrategy()

    def book(
        self,
        property_name: str,
        guest_name: str,
        tier: GuestTier,
        check_in: int,
        check_out: int,
    ) -> OperationResult:
        """Бронирует объект для гостя на ночи [check_in, check_out)."""
        try:
            request = BookReservationRequest(
                property_name=property_name,
                guest_name=guest_name,
                tier=tier,
                check_in=check_in,
                check_out=check_out,
            )
        except ValidationError as e:
            return self._reject("Бронирование", e, property_name=property_name)
        return self.book_reservation(request)

    def book_reservation(self, request: BookReservationRequest) -> OperationResult:
        """Выполняет бронирование по готовому запросу."""
        try:
            property = self._get_property(request.property_name)
            reservation = property.commit_reservation(
                guest_name=request.guest_name,
                tier=request.tier,
                check_in=request.check_in,
                check_out=request.check_out,
                price_strategy=self._price_strategy,
            )
        except (DomainException, ValidationError) as e:
            return self._reject(
                "Бронирование",
                e,
                property_name=request.property_name,
                check_in=request.check_in,
                check_out=request.check_out,
            )

        self._publish_events(property)
        self._logger.info(
            f"Создано бронирование для {reservation.guest_name}",
            property_name=property.name,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            total_price=reservation.total_price,
        )
        return OperationResult.ok(
            message=str(reservation),
            reservation=ReservationDTO.from_domain(reservation),
        )

    def remove_reservation(
        self, property_name: str, reservation: Union[EntityId, ReservationDTO]
    ) -> OperationResult:
        """Отменяет бронирование и освобождает его дни."""
        reservation_id = (
            reservation.id if isinstance(reservation, ReservationDTO) else reservation
        )
        try:
            property = self._get_property(property_name)
            removed = property.remove_reservation(reservation_id)
        except DomainException as e:
            return self._reject(
                "Отмена бронирования",
                e,
                property_name=property_name,
                reservation_id=reservation_id,
            )

        self._publish_events(property)
        self._logger.info(
            f"Отменено бронирование {removed.guest_name}",
            property_name=property.name,
            reservation_id=removed.id,
        )
        return OperationResult.ok(
            message=f"Бронирование {removed.guest_name} отменено",
            reservation=ReservationDTO.from_domain(removed),
        )

    def get_reservations(self, property_name: str) -> List[ReservationDTO]:
        """Бронирования объекта; пустой список, если объект не найден."""
        property = self._properties.get_by_name(property_name)
        if property is None:
            return []
        return [ReservationDTO.from_domain(r) for r in property.reservations]


class PropertyApplicationService(_BaseApplicationService):
    """Сервис приложения для управления объектами размещения и их календарем."""

    # --- Изменения ---

    def create_property(
        self,
        name: str,
        base_price: float,
        property_type: Union[PropertyType, int] = PropertyType.ECO_APARTMENT,
    ) -> OperationResult:
        """Создает объект размещения с уникальным названием."""
        try:
            request = CreatePropertyRequest(
                name=name, base_price=base_price, property_type=property_type
            )
            property = Property.create(
                name=request.name,
                base_price=request.base_price,
                property_type=request.property_type,
            )
            self._properties.add(property)
        except (DomainException, ValidationError) as e:
            return self._reject("Создание объекта", e, property_name=name)

        self._logger.info(
            f"Создан объект '{property.name}'",
            property_type=property.type_name,
            base_price=property.base_price,
        )
        return OperationResult.ok(message=f"Объект '{property.name}' создан")

    def rename_property(self, old_name: str, new_name: str) -> OperationResult:
        """Переименовывает объект; новое название должно быть уникальным."""
        try:
            property = self._properties.rename(old_name, new_name)
        except DomainException as e:
            return self._reject(
                "Переименование объекта", e, old_name=old_name, new_name=new_name
            )

        self._logger.info(f"Объект '{old_name}' переименован в '{property.name}'")
        return OperationResult.ok(message=f"Объект переименован в '{property.name}'")

    def update_base_price(self, property_name: str, new_price: float) -> OperationResult:
        """Меняет базовую цену объекта без бронирований."""
        try:
            request = UpdateBasePriceRequest(
                property_name=property_name, new_price=new_price
            )
            property = self._get_property(request.property_name)
            property.update_base_price(request.new_price)
        except (DomainException, ValidationError) as e:
            return self._reject(
                "Изменение базовой цены",
                e,
                property_name=property_name,
                new_price=new_price,
            )

        self._logger.info(
            f"Базовая цена объекта '{property.name}' изменена",
            base_price=property.base_price,
        )
        return OperationResult.ok(
            message=f"Новая базовая цена: {property.base_price:.2f}"
        )

    def set_environmental_modifier(
        self,
        property_name: str,
        start_day: int,
        modifier: float,
        end_day: Optional[int] = None,
    ) -> OperationResult:
        """Устанавливает модификатор для дня или диапазона дней включительно."""
        try:
            request = SetModifierRequest(
                property_name=property_name,
                start_day=start_day,
                end_day=end_day,
                modifier=modifier,
            )
        except ValidationError as e:
            return self._reject(
                "Изменение модификатора", e, property_name=property_name
            )
        return self.apply_modifier(request)

    def apply_modifier(self, request: SetModifierRequest) -> OperationResult:
        """Применяет запрос на изменение модификатора."""
        end_day = request.start_day if request.end_day is None else request.end_day
        try:
            property = self._get_property(request.property_name)
            property.set_environmental_modifier(
                request.start_day, request.modifier, end_day
            )
        except DomainException as e:
            return self._reject(
                "Изменение модификатора", e, **request.model_dump(mode="json")
            )

        self._logger.info(
            f"Модификатор {request.modifier:.2f} применен к дням "
            f"{request.start_day}-{end_day}",
            property_name=property.name,
        )
        return OperationResult.ok(
            message=f"Дни {request.start_day}-{end_day} обновлены"
        )

    def reset_environmental_modifier(
        self, property_name: str, start_day: int, end_day: Optional[int] = None
    ) -> OperationResult:
        """Возвращает стандартный модификатор 1.0 для дня или диапазона."""
        end_day = start_day if end_day is None else end_day
        try:
            property = self._get_property(property_name)
            property.reset_environmental_modifier(start_day, end_day)
        except DomainException as e:
            return self._reject(
                "Сброс модификатора",
                e,
                property_name=property_name,
                start_day=start_day,
                end_day=end_day,
            )

        self._logger.info(
            f"Модификатор сброшен для дней {start_day}-{end_day}",
            property_name=property.name,
        )
        return OperationResult.ok(message=f"Дни {start_day}-{end_day} сброшены")

    def remove_property(self, property_name: str) -> OperationResult:
        """Удаляет объект, если у него нет бронирований."""
        try:
            property = self._properties.remove(property_name)
        except DomainException as e:
            return self._reject("Удаление объекта", e, property_name=property_name)

        self._logger.info(f"Объект '{property.name}' удален")
        return OperationResult.ok(message=f"Объект '{property.name}' удален")

    # --- Запросы ---

    def list_properties(self) -> List[PropertyDTO]:
        """Возвращает все объекты в порядке добавления."""
        return [PropertyDTO.from_domain(p) for p in self._properties.list_all()]

    def get_property(self, property_name: str) -> Optional[PropertyDTO]:
        property = self._properties.get_by_name(property_name)
        if property is None:
            return None
        return PropertyDTO.from_domain(property)

    def get_calendar(self, property_name: str) -> List[CalendarSlotDTO]:
        """Все 30 дней календаря объекта; пустой список, если объект не найден."""
        property = self._properties.get_by_name(property_name)
        if property is None:
            return []
        return [CalendarSlotDTO.from_domain(slot) for slot in property.slots]

    def get_calendar_slot(
        self, property_name: str, day: int
    ) -> Optional[CalendarSlotDTO]:
        property = self._properties.get_by_name(property_name)
        if property is None or not CalendarPolicy.is_valid_day(day):
            return None
        return CalendarSlotDTO.from_domain(property.get_slot(day))

    def get_availability(
        self,
        property_name: str,
        start_day: int = 1,
        end_day: int = CalendarPolicy.HORIZON_DAYS,
    ) -> Optional[AvailabilityDTO]:
        """Количество свободных и занятых дней в диапазоне (границы прижимаются)."""
        property = self._properties.get_by_name(property_name)
        if property is None:
            return None
        return AvailabilityDTO(
            property_name=property.name,
            start_day=start_day,
            end_day=end_day,
            available_days=property.count_available_days_in_range(start_day, end_day),
            booked_days=property.count_booked_days_in_range(start_day, end_day),
        )
