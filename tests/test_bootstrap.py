"""
Тесты сборки приложения.
"""
from bootstrap import bootstrap_app
from booking.domain import ReservationCreated
from shared_kernel import GuestTier, PropertyType


def test_bootstrap_wires_shared_catalog(logger):
    app = bootstrap_app(logger=logger)

    app["property_service"].create_property("Flat", 1000.0)

    assert app["properties"].get_by_name("Flat") is not None
    assert app["booking_engine"].book("Flat", "Alice", GuestTier.REGULAR, 1, 3)
    assert app["property_service"].get_property("Flat").reservation_count == 1


def test_bootstrap_without_seed_is_empty(logger):
    app = bootstrap_app(logger=logger)

    assert app["property_service"].list_properties() == []


def test_seed_sample_data(logger):
    app = bootstrap_app(seed=True, logger=logger)
    service = app["property_service"]

    properties = service.list_properties()

    assert [(p.name, p.property_type) for p in properties] == [
        ("Eco-Apt 101", PropertyType.ECO_APARTMENT),
        ("Sustainable Home", PropertyType.SUSTAINABLE_HOUSE),
    ]
    (reservation,) = app["booking_engine"].get_reservations("Eco-Apt 101")
    assert reservation.guest_name == "Test Guest"
    assert (reservation.check_in, reservation.check_out) == (5, 8)
    assert reservation.total_price == 3000.0
    assert service.get_property("Eco-Apt 101").available_days == 27
    assert service.get_property("Sustainable Home").available_days == 30


def test_events_reach_subscribers(logger):
    app = bootstrap_app(logger=logger)
    received = []
    app["event_bus"].subscribe(ReservationCreated, received.append)

    app["property_service"].create_property("Flat", 1000.0)
    app["booking_engine"].book("Flat", "Alice", GuestTier.REGULAR, 1, 3)

    assert len(received) == 1
    assert received[0].guest_name == "Alice"
