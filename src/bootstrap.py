from typing import Optional

from booking.application import BookingEngine, PropertyApplicationService
from booking.infrastructure import (
    ConsoleLogger,
    InMemoryEventBus,
    InMemoryPropertyRepository,
)
from booking.interfaces import ILogger
from shared_kernel import GuestTier, PropertyType


def bootstrap_app(seed: bool = False, logger: Optional[ILogger] = None):
    """Создает и настраивает все компоненты приложения."""
    logger = logger or ConsoleLogger()

    # 1. Общий справочник объектов для обоих сервисов
    properties = InMemoryPropertyRepository()
    event_bus = InMemoryEventBus(logger=logger)

    # 2. Создаем сервисы, передавая им зависимости
    booking_engine = BookingEngine(properties, event_bus=event_bus, logger=logger)
    property_service = PropertyApplicationService(
        properties, event_bus=event_bus, logger=logger
    )

    # 3. Демонстрационные данные для интерфейса
    if seed:
        seed_sample_data(property_service, booking_engine)

    return {
        "properties": properties,
        "event_bus": event_bus,
        "booking_engine": booking_engine,
        "property_service": property_service,
    }


def seed_sample_data(
    property_service: PropertyApplicationService, booking_engine: BookingEngine
) -> None:
    """Заполняет справочник примерами объектов и одним бронированием."""
    property_service.create_property("Eco-Apt 101", 1000.0, PropertyType.ECO_APARTMENT)
    property_service.create_property(
        "Sustainable Home", 1000.0, PropertyType.SUSTAINABLE_HOUSE
    )
    booking_engine.book("Eco-Apt 101", "Test Guest", GuestTier.REGULAR, 5, 8)
