#!/usr/bin/env python3
"""Configuration management for the transaction explainer.

This module provides immutable, validated configuration dataclasses. The
configuration is built once at startup (usually from environment variables)
and passed explicitly to the payment verifier and explanation assembler.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

# Get logger for this module
logger = logging.getLogger(__name__)

BASE_CHAIN_ID = 8453
DEFAULT_PAYMENT_ADDRESS = "0x3B5Ca729ae7D427616873f5CD0B9418243090c4c"
DEFAULT_USDC_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
DEFAULT_PRICE_UNITS = 3_000_000  # 3 USDC, 6 decimals
DEFAULT_RPC_URLS: tuple[str, ...] = (
    "https://base.publicnode.com",
    "https://mainnet.base.org",
    "https://base.llamarpc.com",
    "https://1rpc.io/base",
)


def _checksum(value: str, label: str, env_name: str) -> str:
    """Validate an address and return its checksummed form."""
    if not value:
        raise ValueError(f"{label} is required ({env_name})")
    # Mixed-case input is re-checksummed rather than rejected
    if not isinstance(value, str) or not Web3.is_address(value.lower()):
        raise ValueError(f"Invalid {label.lower()}: {value}")
    return Web3.to_checksum_address(value)


@dataclass(frozen=True, slots=True)
class PaymentConfig:
    """Payment acceptance parameters.

    Attributes:
        payment_address: Address that must receive the stablecoin transfer
        stablecoin_address: Address of the accepted token contract
        required_amount: Minimum amount in the token's smallest unit
        chain_id: The only network on which payments count
        min_confirmations: Required depth (latest - inclusion + 1)
        token_decimals: Token decimals, used only for display
        token_symbol: Token symbol, used only for display
    """

    payment_address: str = DEFAULT_PAYMENT_ADDRESS
    stablecoin_address: str = DEFAULT_USDC_ADDRESS
    required_amount: int = DEFAULT_PRICE_UNITS
    chain_id: int = BASE_CHAIN_ID
    min_confirmations: int = 1
    token_decimals: int = 6
    token_symbol: str = "USDC"

    def __post_init__(self) -> None:
        """Validate payment configuration."""
        object.__setattr__(
            self, 'payment_address',
            _checksum(self.payment_address, "Payment address", "PAYMENT_ADDRESS")
        )
        object.__setattr__(
            self, 'stablecoin_address',
            _checksum(self.stablecoin_address, "Stablecoin address", "STABLECOIN_ADDRESS")
        )

        if self.required_amount <= 0:
            raise ValueError(f"Required amount must be positive, got {self.required_amount}")
        if self.chain_id <= 0:
            raise ValueError(f"Chain ID must be positive, got {self.chain_id}")
        if self.min_confirmations < 0:
            raise ValueError(
                f"Minimum confirmations must be non-negative, got {self.min_confirmations}"
            )
        if not 0 <= self.token_decimals <= 36:
            raise ValueError(f"Token decimals out of range (0-36), got {self.token_decimals}")


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Ordered list of read-only RPC endpoints.

    Attributes:
        rpc_urls: Candidate endpoints, tried strictly in this order
        request_timeout: Per-candidate timeout in seconds
    """

    rpc_urls: tuple[str, ...] = DEFAULT_RPC_URLS
    request_timeout: float = 10.0

    ALLOWED_SCHEMES: ClassVar[set[str]] = {'http', 'https'}

    def __post_init__(self) -> None:
        """Validate provider configuration."""
        # Accept any iterable (e.g. a list) but store an immutable tuple
        object.__setattr__(self, 'rpc_urls', tuple(self.rpc_urls))

        if not self.rpc_urls:
            raise ValueError("At least one RPC URL is required (RPC_URLS)")

        for url in self.rpc_urls:
            parsed = urlparse(url)
            if parsed.scheme not in self.ALLOWED_SCHEMES or not parsed.netloc:
                raise ValueError(
                    f"Invalid RPC URL: {url}. Expected an http or https endpoint"
                )

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")


@dataclass(frozen=True, slots=True)
class ExplorerConfig:
    """Public block explorer used for fallback links.

    Attributes:
        base_url: Explorer home page, used when no hash is known
        tx_url_template: Transaction page template with a ``{tx}`` placeholder
        native_symbol: Symbol of the chain's native asset for fee display
    """

    base_url: str = "https://basescan.org"
    tx_url_template: str = "https://basescan.org/tx/{tx}"
    native_symbol: str = "ETH"

    def __post_init__(self) -> None:
        """Validate explorer configuration."""
        if "{tx}" not in self.tx_url_template:
            raise ValueError(
                f"Explorer URL template must contain '{{tx}}', got {self.tx_url_template}"
            )

    def tx_url(self, tx_hash: str | None) -> str:
        """Return the explorer link for a transaction, or the home page."""
        if not tx_hash:
            return self.base_url
        return self.tx_url_template.format(tx=tx_hash)


@dataclass(frozen=True, slots=True)
class ExplainerConfig:
    """Main configuration for the explainer service."""

    payment: PaymentConfig = field(default_factory=PaymentConfig)
    providers: ProviderConfig = field(default_factory=ProviderConfig)
    explorer: ExplorerConfig = field(default_factory=ExplorerConfig)

    @classmethod
    def from_env(cls) -> "ExplainerConfig":
        """Load configuration from environment variables.

        Every variable is optional; unset variables fall back to the
        Base mainnet / USDC defaults.

        Returns:
            ExplainerConfig instance with loaded values

        Raises:
            ValueError: If a variable is present but invalid
        """
        rpc_env = os.environ.get("RPC_URLS", "")
        rpc_urls = tuple(u.strip() for u in rpc_env.split(",") if u.strip()) or DEFAULT_RPC_URLS

        # int()/float() raise ValueError on malformed numbers, same as validation
        providers = ProviderConfig(
            rpc_urls=rpc_urls,
            request_timeout=float(os.environ.get("REQUEST_TIMEOUT", "10")),
        )

        payment = PaymentConfig(
            payment_address=os.environ.get("PAYMENT_ADDRESS", DEFAULT_PAYMENT_ADDRESS),
            stablecoin_address=os.environ.get("STABLECOIN_ADDRESS", DEFAULT_USDC_ADDRESS),
            required_amount=int(os.environ.get("PRICE_UNITS", str(DEFAULT_PRICE_UNITS))),
            chain_id=int(os.environ.get("CHAIN_ID", str(BASE_CHAIN_ID))),
            min_confirmations=int(os.environ.get("MIN_CONFIRMATIONS", "1")),
            token_decimals=int(os.environ.get("TOKEN_DECIMALS", "6")),
            token_symbol=os.environ.get("TOKEN_SYMBOL", "USDC"),
        )

        explorer_base = os.environ.get("EXPLORER_URL", "https://basescan.org").rstrip("/")
        explorer = ExplorerConfig(
            base_url=explorer_base,
            tx_url_template=f"{explorer_base}/tx/{{tx}}",
            native_symbol=os.environ.get("NATIVE_SYMBOL", "ETH"),
        )

        return cls(payment=payment, providers=providers, explorer=explorer)

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Transaction Explainer Configuration")
        logger.info("=" * 60)

        logger.info("Providers:")
        for position, url in enumerate(self.providers.rpc_urls, start=1):
            logger.info(f"  {position}. {url}")
        logger.info(f"  Request Timeout: {self.providers.request_timeout} seconds")

        logger.info("Payment:")
        logger.info(f"  Chain ID: {self.payment.chain_id}")
        logger.info(f"  Recipient: {self.payment.payment_address}")
        logger.info(f"  Token: {self.payment.token_symbol} at {self.payment.stablecoin_address}")
        logger.info(f"  Price: {self.payment.required_amount} units")
        logger.info(f"  Min Confirmations: {self.payment.min_confirmations}")

        logger.info(f"Explorer: {self.explorer.base_url}")
        logger.info("=" * 60)
