from pathlib import Path
from typing import Any, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalise values that are compared case-sensitively downstream."""

        super().model_post_init(__context)

        object.__setattr__(self, "target_symbol", self.target_symbol.upper())
        object.__setattr__(self, "default_symbol", self.default_symbol.upper())
        if self.target_contract:
            object.__setattr__(self, "target_contract", self.target_contract.lower())

    log_level: str = Field(default="INFO", description="Logging level")

    # SWFT quote source
    swft_base_url: str = Field(
        default="https://www.swftc.info",
        description="Base URL of the SWFT exchange API",
        validation_alias=AliasChoices("swft_base_url", "SWFT_BASE_URL", "SWFT_API_URL"),
    )
    swft_timeout_seconds: float = Field(default=15.0, gt=0, description="HTTP timeout for SWFT calls")
    swft_success_code: str = Field(default="800", description="resCode returned by SWFT on success")

    # Refresh cadence
    quote_refresh_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Period of the background quote refresh",
    )
    input_debounce_seconds: float = Field(
        default=0.05,
        ge=0,
        description="Quiet period applied to amount, address and asset/amount pair changes",
    )

    # Fixed target asset
    target_symbol: str = Field(default="USDT", description="Symbol of the fixed target asset")
    target_network: str = Field(default="ETH", description="Network of the fixed target asset")
    target_contract: str = Field(
        default="0xdac17f958d2ee523a2206206994597c13d831ec7",
        description="Contract address of the fixed target asset",
    )
    target_decimals: int = Field(default=6, ge=0, description="Decimal precision of the target asset")

    # Source asset selected when a session starts
    default_symbol: str = Field(default="ETH", description="Source asset selected at startup")
    default_network: str = Field(default="ETH", description="Network of the startup source asset")
    default_decimals: int = Field(default=18, ge=0, description="Decimal precision of the startup source asset")

    # Coin catalog
    supported_network: str = Field(
        default="ETH",
        description="Only coins whose main network matches are offered as sources",
    )
    most_used_coins: List[str] = Field(
        default_factory=lambda: ["ETH", "USDC", "DAI", "WBTC"],
        description="Symbols pinned to the top of the asset picker, in order",
    )

    @property
    def swft_api_url(self) -> str:
        return self.swft_base_url.rstrip("/")


settings = Settings()
