"""
Transaction explainer package.

Explains on-chain transactions and unlocks the detailed view only after a
stablecoin payment has been verified on chain.
"""

from .config import ExplainerConfig, ExplorerConfig, PaymentConfig, ProviderConfig
from .exceptions import AllProvidersUnavailable, ExplainerError, InvalidTransactionHash
from .explanation_assembler import ExplanationAssembler
from .models import ExplanationResult, PaymentState, PaymentStatus
from .payment_verifier import PaymentVerifier
from .service import ExplainerService

__all__ = [
    "ExplainerConfig",
    "ExplorerConfig",
    "PaymentConfig",
    "ProviderConfig",
    "ExplainerError",
    "InvalidTransactionHash",
    "AllProvidersUnavailable",
    "ExplanationAssembler",
    "ExplanationResult",
    "PaymentState",
    "PaymentStatus",
    "PaymentVerifier",
    "ExplainerService",
]
__version__ = "0.1.0"
