"""Wire models for the SWFT exchange API.

Responses are treated as untrusted: everything the engine consumes passes
through these models first, so malformed payloads surface as a
``pydantic.ValidationError`` at the provider boundary.
"""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SwftCoinInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    coin_code: str = Field(alias="coinCode", description="Exchange code, e.g. ETH or USDT(ERC20)")
    coin_name: Optional[str] = Field(default=None, alias="coinName", description="Display name")
    coin_decimal: int = Field(default=18, alias="coinDecimal", ge=0, description="Token decimal places")
    contract: str = Field(
        default="",
        validation_alias=AliasChoices("contact", "contract"),
        description="Token contract address (SWFT spells the key 'contact')",
    )
    main_network: str = Field(default="", alias="mainNetwork", description="Chain the coin lives on")
    no_support_coin: str = Field(
        default="",
        alias="noSupportCoin",
        description="Comma separated coin codes this coin cannot be swapped into",
    )

    @field_validator("contract", "no_support_coin", "main_network", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def unsupported_targets(self) -> List[str]:
        return [code.strip() for code in self.no_support_coin.split(",") if code.strip()]


class SwftPriceInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    instant_rate: Decimal = Field(alias="instantRate", gt=0, description="Units of target per unit of source")
    deposit_coin_fee_rate: Decimal = Field(
        default=Decimal("0"),
        alias="depositCoinFeeRate",
        ge=0,
        lt=1,
        description="Fraction of the deposit kept as exchange fee",
    )
    receive_coin_fee: Decimal = Field(
        default=Decimal("0"),
        alias="receiveCoinFee",
        ge=0,
        description="Flat chain fee deducted from the received amount",
    )
    deposit_min: Optional[Decimal] = Field(default=None, alias="depositMin")
    deposit_max: Optional[Decimal] = Field(default=None, alias="depositMax")

    @field_validator("receive_coin_fee", "deposit_coin_fee_rate", mode="before")
    @classmethod
    def _blank_fee_is_zero(cls, value: Any) -> Any:
        if value is None or value == "":
            return "0"
        return value

    @field_validator("deposit_min", "deposit_max", mode="before")
    @classmethod
    def _blank_limit_is_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value


class SwftEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    res_code: str = Field(alias="resCode", description="'800' on success")
    res_msg: Optional[str] = Field(default=None, alias="resMsg")

    @field_validator("res_code", mode="before")
    @classmethod
    def _code_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    def is_success(self, success_code: str = "800") -> bool:
        return self.res_code == success_code


class SwftPriceResponse(SwftEnvelope):
    data: Optional[SwftPriceInfo] = None


class SwftCoinListResponse(SwftEnvelope):
    data: List[SwftCoinInfo] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value
