"""
Расчет стоимости проживания.

Итоговая цена ночи складывается из базовой цены объекта, множителя его типа
и экологического модификатора конкретного дня. Скидка уровня гостя
применяется отдельно, поверх уже рассчитанных ночных тарифов.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from shared_kernel import GuestTier

if TYPE_CHECKING:
    from .domain import Property


def final_nightly_rate(
    base_price: float, type_multiplier: float, day_modifier: float
) -> float:
    """Цена одной ночи до скидки."""
    return base_price * type_multiplier * day_modifier


def apply_tier_discount(rate: float, tier: GuestTier) -> float:
    """Применяет скидку уровня лояльности к ночному тарифу."""
    return rate * (1 - tier.discount)


class RateQuote(BaseModel):
    """Расчет стоимости проживания: тарифы до и после скидки."""

    model_config = ConfigDict(frozen=True)

    tier: GuestTier
    nightly_rates: Tuple[float, ...]
    discounted_rates: Tuple[float, ...]

    @model_validator(mode="after")
    def rates_have_same_length(self) -> "RateQuote":
        if len(self.nightly_rates) != len(self.discounted_rates):
            raise ValueError("Количество тарифов до и после скидки не совпадает")
        return self

    @property
    def subtotal(self) -> float:
        return sum(self.nightly_rates)

    @property
    def total(self) -> float:
        return sum(self.discounted_rates)

    @classmethod
    def from_nightly_rates(
        cls, nightly_rates: Sequence[float], tier: GuestTier
    ) -> "RateQuote":
        """Применяет скидку к каждой ночи и сохраняет обе последовательности."""
        return cls(
            tier=tier,
            nightly_rates=tuple(nightly_rates),
            discounted_rates=tuple(
                apply_tier_discount(rate, tier) for rate in nightly_rates
            ),
        )


class DefaultPriceStrategy:
    """
    Стратегия расчета по умолчанию.

    Тариф ночи = базовая цена * множитель типа * модификатор дня.
    Каждая ночь считается по модификатору своего дня календаря.
    """

    def calculate_nightly_rates(
        self, property: "Property", check_in: int, check_out: int
    ) -> List[float]:
        """Тарифы (до скидки) для ночей [check_in, check_out)."""
        return [property.final_daily_rate(day) for day in range(check_in, check_out)]
