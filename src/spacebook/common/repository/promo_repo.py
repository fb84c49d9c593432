import logging

from spacebook.common.models.pricing import PromoValidation
from spacebook.common.utils.custom_exceptions import ApiError
from spacebook.common.utils.custom_response import unwrap
from spacebook.common.utils.http_client import ApiClient

logger = logging.getLogger(__name__)


class PromoCodeRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def validate(self, code: str, space_id: str, amount: float) -> PromoValidation:
        try:
            body = await self.client.post(
                "/promocodes/validate",
                json={"code": code, "spaceId": space_id, "amount": amount},
            )
        except ApiError as err:
            logger.error(f"Error validating promo code {code}: {err}")
            raise

        data = unwrap(body) or {}
        return PromoValidation(
            valid=bool(data.get("valid")),
            discount=float(data.get("discount") or 0),
            final_amount=float(data.get("finalAmount") or amount),
            message=data.get("message"),
        )
