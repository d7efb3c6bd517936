"""
Bridge Transfer Errors

Typed error taxonomy. Each error names the phase it was raised in so a caller
can tell a submission failure (never retried) from a bounded wait that ran
out (safe to resume from the source transaction id).
"""

from typing import Optional


class BridgeTransferError(Exception):
    """Base error for all bridge transfer failures"""

    def __init__(self, message: str, phase=None, transfer=None):
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.transfer = transfer


class SubmissionError(BridgeTransferError):
    """Transaction construction, signing or broadcast failed"""


class FeeTooLowError(BridgeTransferError):
    """Requested amount cannot cover the automatic delivery fees"""

    def __init__(self, message: str, destination_amount: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.destination_amount = destination_amount


class QuoteError(BridgeTransferError):
    """Feasibility quote could not be computed"""


class RecoveryError(BridgeTransferError):
    """Recovery token does not match a known source submission"""


class InvalidTransitionError(BridgeTransferError):
    """Illegal move in the transfer phase machine"""


class RetryTimeoutError(BridgeTransferError, TimeoutError):
    """A bounded wait exceeded its deadline"""

    def __init__(self, label: str, elapsed: float, **kwargs):
        super().__init__(f"{label}: timed out after {elapsed:.2f}s", **kwargs)
        self.label = label
        self.elapsed = elapsed


class AttestationTimeoutError(RetryTimeoutError):
    """Attestation did not become available before the deadline"""


class StateStreamExhaustedError(BridgeTransferError):
    """State stream ended before reaching a terminal state"""


class RelayStatusError(BridgeTransferError):
    """Relay status service returned a hard error"""


class CredentialError(BridgeTransferError):
    """Required secret is missing"""


class UnsupportedPlatformError(BridgeTransferError):
    """No signer factory is registered for a chain platform"""
