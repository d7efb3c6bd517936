"""
Bridge Transfer System

Orchestrates cross-chain token transfers through an attestation-based bridge.

Components:
- transfer_engine: Phase state machine (quote, submit, attest, redeem, round trip, recovery)
- retry: Bounded polling for eventually-consistent remote state
- attestation_waiter: Hard-deadline wait for attestations
- state_tracker: Ordered state reporting until a terminal state
- relay_status: Relayer API client for automatic delivery
- signers: Per-platform signer factories and credential providers
- config: YAML configuration
- transfer_integration: End-to-end send / recover + tracking

Delivery modes:
- Manual: source submission -> attestation -> destination redemption
- Automatic: source submission, the relayer redeems on the destination chain
"""

from .transfer_engine import (
    TransferOrchestrator,
)
from .models import (
    ChainAddress,
    DeliveryOptions,
    Quote,
    QuoteAmount,
    QuoteRoute,
    RedeemIntent,
    RelayStatus,
    StateSnapshot,
    SubmissionRecord,
    TokenId,
    Transfer,
    TransferEndpoint,
    TransferIntent,
    TransferPhase,
    TransferReceipt,
    TransferRequest,
    TransferResult,
    TransferState,
    parse_amount,
)
from .errors import (
    AttestationTimeoutError,
    BridgeTransferError,
    CredentialError,
    FeeTooLowError,
    InvalidTransitionError,
    QuoteError,
    RecoveryError,
    RelayStatusError,
    RetryTimeoutError,
    StateStreamExhaustedError,
    SubmissionError,
    UnsupportedPlatformError,
)
from .retry import (
    NOT_READY,
    retry,
)
from .attestation_waiter import (
    AttestationWaiter,
)
from .state_tracker import (
    PollingStateStream,
    TransferStateTracker,
    wait_log,
)
from .relay_status import (
    RelayStatusClient,
    wait_for_relay,
)
from .signers import (
    EnvCredentialProvider,
    SignerFactoryRegistry,
    StaticCredentialProvider,
    resolve_endpoint,
)
from .config import (
    BridgeConfig,
    configure_logging,
    load_config,
)
from .transfer_integration import (
    BridgeTransferIntegration,
)

__all__ = [
    # Orchestration
    'TransferOrchestrator',
    'BridgeTransferIntegration',

    # Polling and tracking
    'NOT_READY',
    'retry',
    'AttestationWaiter',
    'PollingStateStream',
    'TransferStateTracker',
    'wait_log',
    'RelayStatusClient',
    'wait_for_relay',

    # Models
    'ChainAddress',
    'DeliveryOptions',
    'Quote',
    'QuoteAmount',
    'QuoteRoute',
    'RedeemIntent',
    'RelayStatus',
    'StateSnapshot',
    'SubmissionRecord',
    'TokenId',
    'Transfer',
    'TransferEndpoint',
    'TransferIntent',
    'TransferPhase',
    'TransferReceipt',
    'TransferRequest',
    'TransferResult',
    'TransferState',
    'parse_amount',

    # Errors
    'AttestationTimeoutError',
    'BridgeTransferError',
    'CredentialError',
    'FeeTooLowError',
    'InvalidTransitionError',
    'QuoteError',
    'RecoveryError',
    'RelayStatusError',
    'RetryTimeoutError',
    'StateStreamExhaustedError',
    'SubmissionError',
    'UnsupportedPlatformError',

    # Signers
    'EnvCredentialProvider',
    'SignerFactoryRegistry',
    'StaticCredentialProvider',
    'resolve_endpoint',

    # Configuration
    'BridgeConfig',
    'configure_logging',
    'load_config',
]

__version__ = '1.0.0'
