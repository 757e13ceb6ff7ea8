from enum import Enum


class ErrorKey(Enum):
    TOKENIZATION_ERROR = "TOKENIZATION_ERROR"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    PROVIDER_UNAUTHORIZED = "PROVIDER_UNAUTHORIZED"
    PROVIDER_TRANSIENT = "PROVIDER_TRANSIENT"
    PROVIDER_MALFORMED = "PROVIDER_MALFORMED"
    DIMENSION_MISMATCH = "DIMENSION_MISMATCH"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    CANCELLED = "CANCELLED"
    CHAIN_STAGE_FAILED = "CHAIN_STAGE_FAILED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    MISSING_API_KEY = "MISSING_API_KEY"


ERROR_MESSAGES = {
    "en": {
        ErrorKey.TOKENIZATION_ERROR: "Unable to tokenize text.",
        ErrorKey.PROVIDER_RATE_LIMITED: "Rate limit reached or quota exceeded.",
        ErrorKey.PROVIDER_UNAUTHORIZED: "Invalid authentication or insufficient permissions.",
        ErrorKey.PROVIDER_TRANSIENT: "The provider is temporarily unavailable.",
        ErrorKey.PROVIDER_MALFORMED: "The provider rejected the request or returned an unexpected response.",
        ErrorKey.DIMENSION_MISMATCH: "Embedding dimensionality does not match the store.",
        ErrorKey.RECORD_NOT_FOUND: "Record not found.",
        ErrorKey.BACKEND_UNAVAILABLE: "The vector store backend is unavailable.",
        ErrorKey.CANCELLED: "The operation was cancelled.",
        ErrorKey.CHAIN_STAGE_FAILED: "The chain failed.",
        ErrorKey.INVALID_CONFIGURATION: "Invalid configuration.",
        ErrorKey.MISSING_API_KEY: "An API key is required for this provider.",
    }
}


def get_error_message(error_key: ErrorKey, lang: str = "en") -> str:
    """Look up the message for an error key, falling back to English."""
    messages = ERROR_MESSAGES.get(lang, ERROR_MESSAGES["en"])
    return messages.get(error_key, error_key.value)
