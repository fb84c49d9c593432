from enum import Enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass
class PromoCode:
    code: str
    discount: Decimal
    type: DiscountType


@dataclass
class PromoValidation:
    valid: bool
    discount: float
    final_amount: float
    message: Optional[str] = None


@dataclass
class PriceBreakdown:
    subtotal: Decimal
    discount: Decimal
    taxes: Decimal
    total: Decimal
    promo_code: Optional[str] = None
