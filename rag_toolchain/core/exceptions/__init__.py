from .error_messages import ErrorKey, ERROR_MESSAGES, get_error_message
from .exception_classes import (
    RagToolchainError,
    ConfigurationError,
    TokenizationError,
    ProviderError,
    ProviderErrorKind,
    DimensionMismatch,
    NotFound,
    BackendUnavailable,
    Cancelled,
    ChainError,
)

__all__ = [
    "ErrorKey",
    "ERROR_MESSAGES",
    "get_error_message",
    "RagToolchainError",
    "ConfigurationError",
    "TokenizationError",
    "ProviderError",
    "ProviderErrorKind",
    "DimensionMismatch",
    "NotFound",
    "BackendUnavailable",
    "Cancelled",
    "ChainError",
]
