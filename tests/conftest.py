"""
Конфигурация тестов для pytest.
Добавляет директорию src в PYTHONPATH и объявляет общие фикстуры.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Добавляем директорию с исходным кодом в PYTHONPATH
root_dir = str(Path(__file__).parent.parent / "src")
if root_dir not in sys.path:
    sys.path.insert(0, root_dir)

from booking.application import BookingEngine, PropertyApplicationService  # noqa: E402
from booking.domain import Property  # noqa: E402
from booking.infrastructure import InMemoryPropertyRepository  # noqa: E402
from shared_kernel import PropertyType  # noqa: E402


@pytest.fixture
def logger() -> MagicMock:
    """Мок логгера, чтобы тесты не писали в консоль."""
    return MagicMock()


@pytest.fixture
def repository() -> InMemoryPropertyRepository:
    return InMemoryPropertyRepository()


@pytest.fixture
def house() -> Property:
    """Sustainable House с базовой ценой 1000.0 (множитель 1.20)."""
    return Property.create("Green House", 1000.0, PropertyType.SUSTAINABLE_HOUSE)


@pytest.fixture
def apartment() -> Property:
    """Eco-Apartment с базовой ценой 1000.0 (множитель 1.00)."""
    return Property.create("Eco-Apt 101", 1000.0, PropertyType.ECO_APARTMENT)


@pytest.fixture
def engine(repository, logger) -> BookingEngine:
    return BookingEngine(repository, logger=logger)


@pytest.fixture
def property_service(repository, logger) -> PropertyApplicationService:
    return PropertyApplicationService(repository, logger=logger)
