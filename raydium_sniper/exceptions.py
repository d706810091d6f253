"""
Custom exception classes for the sniper bot.

Provides typed exceptions so callers branch on the failure class
instead of inspecting error strings.
"""

class BotException(Exception):
    """Base exception for all bot-related errors."""
    
    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context
    
    def __str__(self):
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class SwapException(BotException):
    """Raised when building or submitting a swap fails."""
    pass


class TransactionTimeoutError(SwapException):
    """Raised when a submitted transaction is not confirmed within the timeout."""
    pass


class TransactionFailedError(SwapException):
    """Raised when the ledger reports an error for a submitted transaction."""
    pass


class ConfigurationException(BotException):
    """Raised when configuration is invalid."""
    pass


class WalletException(BotException):
    """Raised when wallet operations fail."""
    pass


class NetworkException(BotException):
    """Raised when network/RPC operations fail."""
    pass
