"""Response contracts for the wallet custody API."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiModel(BaseModel):
    """Base for API payloads: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TokenAsset(ApiModel):
    """One asset entry from a balance query."""

    symbol: str = Field(default="", description="Token symbol")
    balance: Decimal = Field(default=Decimal("0"), description="Balance in whole coins")
    token_price: Decimal = Field(default=Decimal("0"), alias="tokenPrice", description="USD price")
    chain_index: Optional[str] = Field(None, alias="chainIndex")
    token_address: str = Field(default="", alias="tokenAddress")

    @field_validator("balance", "token_price", mode="before")
    @classmethod
    def _blank_is_zero(cls, value):
        if value is None or value == "":
            return Decimal("0")
        return value

    @property
    def usd_value(self) -> Decimal:
        return self.balance * self.token_price


class GasPrice(ApiModel):
    """Gas price tiers in wei. Only the normal tier is used."""

    normal: int


class SignInfo(ApiModel):
    """Pre-transaction parameters needed to sign locally."""

    nonce: int
    gas_price: GasPrice = Field(..., alias="gasPrice")
    gas_limit: int = Field(..., alias="gasLimit")


class BroadcastResult(ApiModel):
    """Result of submitting a signed transaction."""

    order_id: str = Field(..., alias="orderId")
    tx_hash: Optional[str] = Field(None, alias="txHash")
