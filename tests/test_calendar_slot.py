"""
Тесты для дня календаря (CalendarSlot).
"""
import pytest
from pydantic import ValidationError

from booking.domain import CalendarSlot, ImpactLevel, Reservation
from shared_kernel import GuestTier


@pytest.fixture
def reservation() -> Reservation:
    return Reservation(
        guest_name="Alice",
        tier=GuestTier.REGULAR,
        check_in=5,
        check_out=6,
        nightly_rates=(1000.0,),
        discounted_rates=(1000.0,),
    )


class TestCalendarSlot:
    """Тесты для класса CalendarSlot."""

    def test_new_slot_defaults(self):
        slot = CalendarSlot(day=5)

        assert slot.day == 5
        assert slot.modifier == 1.0
        assert slot.is_available()
        assert not slot.is_booked
        assert slot.reservation is None
        assert slot.guest_name is None

    @pytest.mark.parametrize("day", [0, 31])
    def test_day_outside_horizon_rejected(self, day):
        with pytest.raises(ValidationError):
            CalendarSlot(day=day)

    def test_day_is_immutable(self):
        slot = CalendarSlot(day=5)

        with pytest.raises(ValidationError):
            slot.day = 6

    def test_book_free_slot(self, reservation):
        slot = CalendarSlot(day=5)

        assert slot.book(reservation) is True
        assert slot.is_booked
        assert not slot.is_available()
        assert slot.reservation is reservation
        assert slot.guest_name == "Alice"

    def test_book_taken_slot_fails_without_side_effects(self, reservation):
        slot = CalendarSlot(day=5)
        slot.book(reservation)
        other = reservation.model_copy(update={"guest_name": "Bob"})

        assert slot.book(other) is False
        assert slot.reservation is reservation

    def test_cancel_frees_slot(self, reservation):
        slot = CalendarSlot(day=5)
        slot.book(reservation)

        slot.cancel()

        assert slot.is_available()
        assert slot.reservation is None

    def test_cancel_is_idempotent(self):
        slot = CalendarSlot(day=5)

        slot.cancel()
        slot.cancel()

        assert slot.is_available()

    @pytest.mark.parametrize(
        "value, expected", [(0.5, 0.80), (1.5, 1.20), (0.95, 0.95), (0.80, 0.80)]
    )
    def test_set_modifier_clamps(self, value, expected):
        slot = CalendarSlot(day=1)

        slot.set_modifier(value)

        assert slot.modifier == pytest.approx(expected)

    def test_reset_modifier(self):
        slot = CalendarSlot(day=1, modifier=0.9)

        slot.reset_modifier()

        assert slot.modifier == 1.0

    @pytest.mark.parametrize(
        "modifier, level",
        [
            (0.80, ImpactLevel.REDUCED),
            (0.85, ImpactLevel.REDUCED),
            (0.89, ImpactLevel.REDUCED),
            (0.90, ImpactLevel.STANDARD),
            (0.95, ImpactLevel.STANDARD),
            (0.99, ImpactLevel.STANDARD),
            (1.0, ImpactLevel.STANDARD),
            (1.005, ImpactLevel.STANDARD),
            (1.01, ImpactLevel.INCREASED),
            (1.20, ImpactLevel.INCREASED),
        ],
    )
    def test_impact_level(self, modifier, level):
        assert CalendarSlot(day=1, modifier=modifier).impact_level is level

    def test_describe(self, reservation):
        slot = CalendarSlot(day=5)
        assert slot.describe() == "Day 5 - AVAILABLE"

        slot.book(reservation)
        assert slot.describe() == "Day 5 - BOOKED (Alice)"
