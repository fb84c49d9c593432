from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from spacebook.common.models.pricing import DiscountType, PriceBreakdown, PromoCode, PromoValidation
from spacebook.common.repository.promo_repo import PromoCodeRepository
from spacebook.common.utils.constants import TAX_RATE

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class PricingService:
    """Display-side price breakdown. The server's total is the one charged."""

    def __init__(self, promo_repo: Optional[PromoCodeRepository] = None, tax_rate: str = TAX_RATE):
        self.promo_repo = promo_repo
        self.tax_rate = Decimal(tax_rate)

    def breakdown(self, unit_price, duration, promo: Optional[PromoCode] = None) -> PriceBreakdown:
        subtotal = Decimal(str(unit_price)) * Decimal(str(duration))
        discount = self._discount(subtotal, promo)
        taxes = (subtotal - discount) * self.tax_rate
        total = subtotal - discount + taxes

        return PriceBreakdown(
            subtotal=_money(subtotal),
            discount=_money(discount),
            taxes=_money(taxes),
            total=_money(total),
            promo_code=promo.code if promo else None,
        )

    @staticmethod
    def _discount(subtotal: Decimal, promo: Optional[PromoCode]) -> Decimal:
        if promo is None:
            return Decimal("0")
        if promo.type == DiscountType.PERCENTAGE:
            discount = subtotal * Decimal(str(promo.discount)) / Decimal("100")
        else:
            discount = Decimal(str(promo.discount))
        return min(discount, subtotal)

    async def apply_promo_code(
        self, code: str, space_id: str, unit_price, duration
    ) -> Tuple[PriceBreakdown, PromoValidation]:
        if self.promo_repo is None:
            raise RuntimeError("promo codes need a PromoCodeRepository")

        base = self.breakdown(unit_price, duration)
        validation = await self.promo_repo.validate(code, space_id, float(base.subtotal))
        if not validation.valid:
            return base, validation

        promo = PromoCode(code=code, discount=Decimal(str(validation.discount)), type=DiscountType.FIXED)
        return self.breakdown(unit_price, duration, promo), validation
