from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from rag_toolchain.core.exceptions.error_messages import ErrorKey, get_error_message

if TYPE_CHECKING:
    from rag_toolchain.chains.types import ChainState


class RagToolchainError(Exception):
    """
        Base class for every error raised by the toolkit.

        Each error carries an error key used to look up a human readable
        message, plus optional detail text and the underlying object
        (usually the SDK or driver exception) that triggered it.

        Attributes:
            error_key (ErrorKey): Key identifying the kind of failure.
            error_detail (str): Free-form detail appended to the message.
            error_obj (Any): The original error or payload, if any.

        Example:
            ```python
            raise NotFound("42")
            ```
        """

    def __init__(self, error_key: ErrorKey, error_detail: str = "", error_obj: Any = None):
        self.error_key: ErrorKey = error_key
        self.error_detail = error_detail
        self.error_obj = error_obj
        message = get_error_message(error_key)
        if error_detail:
            message = f"{message} {error_detail}"
        super().__init__(message)

    @property
    def retriable(self) -> bool:
        return False


class ConfigurationError(RagToolchainError):
    def __init__(self, error_detail: str = "", error_key: ErrorKey = ErrorKey.INVALID_CONFIGURATION):
        super().__init__(error_key, error_detail)


class TokenizationError(RagToolchainError):
    def __init__(self, error_detail: str = "", error_obj: Any = None):
        super().__init__(ErrorKey.TOKENIZATION_ERROR, error_detail, error_obj)


class ProviderErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    TRANSIENT = "transient"
    MALFORMED = "malformed"


_PROVIDER_ERROR_KEYS = {
    ProviderErrorKind.RATE_LIMITED: ErrorKey.PROVIDER_RATE_LIMITED,
    ProviderErrorKind.UNAUTHORIZED: ErrorKey.PROVIDER_UNAUTHORIZED,
    ProviderErrorKind.TRANSIENT: ErrorKey.PROVIDER_TRANSIENT,
    ProviderErrorKind.MALFORMED: ErrorKey.PROVIDER_MALFORMED,
}


class ProviderError(RagToolchainError):
    """Failure talking to an embedding or chat provider."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        error_detail: str = "",
        error_obj: Any = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        super().__init__(_PROVIDER_ERROR_KEYS[kind], error_detail, error_obj)

    @property
    def retriable(self) -> bool:
        return self.kind in (ProviderErrorKind.RATE_LIMITED, ProviderErrorKind.TRANSIENT)


class DimensionMismatch(RagToolchainError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            ErrorKey.DIMENSION_MISMATCH, f"expected {expected}, got {actual}"
        )


class NotFound(RagToolchainError):
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(ErrorKey.RECORD_NOT_FOUND, f"id={identifier}")


class BackendUnavailable(RagToolchainError):
    def __init__(self, error_detail: str = "", error_obj: Any = None):
        super().__init__(ErrorKey.BACKEND_UNAVAILABLE, error_detail, error_obj)

    @property
    def retriable(self) -> bool:
        return True


class Cancelled(RagToolchainError):
    def __init__(self, error_detail: str = ""):
        super().__init__(ErrorKey.CANCELLED, error_detail)


class ChainError(RagToolchainError):
    """
    Raised by a chain run that ended in the ERROR state.

    ``stage`` is the state the run was in when it failed and ``cause`` is the
    original exception, untouched, so callers can tell "no context available"
    (a RETRIEVING failure) from "model unavailable" (a COMPLETING failure).
    ``run`` is the ChainRun record of the failed invocation.
    """

    def __init__(self, stage: "ChainState", cause: BaseException, run: Any = None):
        self.stage = stage
        self.cause = cause
        self.run = run
        stage_name = getattr(stage, "value", stage)
        super().__init__(
            ErrorKey.CHAIN_STAGE_FAILED, f"stage={stage_name}: {cause}", cause
        )

    @property
    def kind(self):
        """The cause's provider kind, or the cause's type for other errors."""
        if isinstance(self.cause, ProviderError):
            return self.cause.kind
        return type(self.cause)

    @property
    def retriable(self) -> bool:
        return isinstance(self.cause, RagToolchainError) and self.cause.retriable
