"""
Exception hierarchy for bulk transfer generation.

Every error is surfaced to the immediate caller of a generation function;
nothing here is retried or suppressed internally.
"""


class BulkTransferError(Exception):
    """Base class for all bulk transfer errors."""
    pass


class ConfigError(BulkTransferError, ValueError):
    """Raised for malformed or contradictory input configuration."""
    pass


class InvalidAddressError(BulkTransferError, ValueError):
    """Raised when an account address cannot be parsed."""

    def __init__(self, address: object, reason: str = ""):
        message = f"Invalid address: {address!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.address = address


class InvalidAssetError(BulkTransferError, ValueError):
    """Raised when a token mint identifier is malformed."""

    def __init__(self, asset: object, reason: str = ""):
        message = f"Invalid asset identifier: {asset!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.asset = asset


class NetworkQueryError(BulkTransferError):
    """Raised when an account existence query fails."""

    def __init__(self, message: str, error_code: object = None):
        super().__init__(message)
        self.error_code = error_code
