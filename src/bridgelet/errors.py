"""Error types for Bridgelet.

Every failure aborts the enclosing ledger invocation; nothing is retried
internally.
"""


class BridgeletError(Exception):
    """Base exception for all bridgelet errors."""
    pass


class ConfigurationError(BridgeletError):
    """Errors related to configuration."""
    pass


class CodecError(BridgeletError):
    """Sweep message fields that cannot be canonically encoded."""
    pass


class LockTimeoutError(BridgeletError):
    """Raised when a lock cannot be acquired within the timeout period."""
    pass


# Initialization


class InitializationError(BridgeletError):
    """Errors related to one-time initialization of ledger state."""
    pass


class AlreadyInitialized(InitializationError):
    pass


class AuthorizedSignerNotSet(InitializationError):
    pass


class InvalidPublicKey(InitializationError):
    """Authorized signer is not a 32-byte Ed25519 public key."""
    pass


# Authorization


class AuthorizationError(BridgeletError):
    """Errors related to sweep authorization."""
    pass


class InvalidSignature(AuthorizationError):
    """Signature blob is malformed (wrong length or type)."""
    pass


class SignatureVerificationFailed(AuthorizationError):
    """Signature is well-formed but does not verify for the current digest."""
    pass


class InvalidNonce(AuthorizationError):
    """The nonce moved underneath this invocation or cannot advance further."""

    def __init__(self, message: str, expected: int = 0, actual: int = 0):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class Unauthorized(AuthorizationError):
    """Caller does not hold the capability the operation requires."""
    pass


# Account state


class AccountStateError(BridgeletError):
    """Errors related to the ephemeral account lifecycle."""

    def __init__(self, message: str, address: str = ""):
        self.address = address
        super().__init__(message)


class NotInitialized(AccountStateError):
    pass


class NotActive(AccountStateError):
    pass


class AlreadySwept(NotActive):
    pass


class AccountExpired(NotActive):
    pass


class InvalidAmount(AccountStateError):
    pass


class InvalidExpiry(AccountStateError):
    pass


class TooManyAssets(AccountStateError):
    pass


# Transfers


class TransferError(BridgeletError):
    """Errors propagated from the asset transfer service."""
    pass


class InsufficientBalance(TransferError):
    def __init__(self, address: str, asset: str, available: int, requested: int):
        self.address = address
        self.asset = asset
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient balance: {address} has {available} {asset}, need {requested}"
        )
