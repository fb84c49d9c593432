from botocore.exceptions import ClientError
import logging
from typing import Optional
from typing import TYPE_CHECKING

from spacebook.common.models.users import TokenPair

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class TokenStore:
    """Where the access/refresh pair and the onboarding flag live."""

    def get_tokens(self) -> Optional[TokenPair]:
        raise NotImplementedError

    def set_tokens(self, access_token: str, refresh_token: Optional[str]):
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError

    def has_seen_onboarding(self) -> bool:
        raise NotImplementedError

    def mark_onboarding_seen(self):
        raise NotImplementedError

    def get_access_token(self) -> Optional[str]:
        tokens = self.get_tokens()
        return tokens.access_token if tokens else None

    def get_refresh_token(self) -> Optional[str]:
        tokens = self.get_tokens()
        return tokens.refresh_token if tokens else None


class InMemoryTokenStore(TokenStore):
    def __init__(self, tokens: Optional[TokenPair] = None):
        self._tokens = tokens
        self._onboarded = False

    def get_tokens(self) -> Optional[TokenPair]:
        return self._tokens

    def set_tokens(self, access_token: str, refresh_token: Optional[str]):
        # one assignment so readers never see half a pair
        self._tokens = TokenPair(access_token=access_token, refresh_token=refresh_token)

    def clear(self):
        self._tokens = None

    def has_seen_onboarding(self) -> bool:
        return self._onboarded

    def mark_onboarding_seen(self):
        self._onboarded = True


class DynamoTokenStore(TokenStore):
    def __init__(self, table: Table, session_id: str):
        self.table = table
        self.session_id = session_id

    @property
    def _pk(self) -> str:
        return f"SESSION#{self.session_id}"

    def get_tokens(self) -> Optional[TokenPair]:
        try:
            response = self.table.get_item(Key={"pk": self._pk, "sk": "TOKENS"})
        except ClientError as err:
            logger.error(f"Error reading tokens for session {self.session_id}: {err}")
            raise

        item = response.get("Item")
        if not item or not item.get("access_token"):
            return None

        return TokenPair(
            access_token=item["access_token"],
            refresh_token=item.get("refresh_token"),
        )

    def set_tokens(self, access_token: str, refresh_token: Optional[str]):
        item = {
            "pk": self._pk,
            "sk": "TOKENS",
            "access_token": access_token,
        }
        if refresh_token:
            item["refresh_token"] = refresh_token

        try:
            self.table.put_item(Item=item)
        except ClientError as err:
            logger.error(
                "couldn't store tokens for session %s. Error: %s",
                self.session_id,
                err.response["Error"]["Message"],
            )
            raise

    def clear(self):
        try:
            self.table.delete_item(Key={"pk": self._pk, "sk": "TOKENS"})
        except ClientError as err:
            logger.error(f"Error clearing tokens for session {self.session_id}: {err}")
            raise

    def has_seen_onboarding(self) -> bool:
        try:
            response = self.table.get_item(Key={"pk": self._pk, "sk": "ONBOARDING"})
        except ClientError as err:
            logger.error(f"Error reading onboarding flag for {self.session_id}: {err}")
            raise
        return "Item" in response

    def mark_onboarding_seen(self):
        try:
            self.table.put_item(Item={"pk": self._pk, "sk": "ONBOARDING"})
        except ClientError as err:
            logger.error(f"Error storing onboarding flag for {self.session_id}: {err}")
            raise
