"""
Translation of provider SDK exceptions into ProviderError
"""

import logging
from typing import Optional

import anthropic
import openai

from rag_toolchain.core.exceptions import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

# 408 request timeout, 409 conflict (lock contention on the provider side)
TRANSIENT_STATUS_CODES = {408, 409}


def classify_status(status_code: int) -> ProviderErrorKind:
    """
    Map an HTTP status code to an error kind

    429 is rate limiting, 401/403 are auth failures, 5xx (including
    Anthropic's 529 "overloaded") are transient, anything else is treated as
    a request the provider will keep rejecting.
    """
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status_code in (401, 403):
        return ProviderErrorKind.UNAUTHORIZED
    if status_code >= 500 or status_code in TRANSIENT_STATUS_CODES:
        return ProviderErrorKind.TRANSIENT
    return ProviderErrorKind.MALFORMED


def _map_sdk_error(
    error: Exception,
    provider: str,
    status_error_cls: type,
    connection_error_cls: type,
) -> ProviderError:
    status_code: Optional[int] = None
    if isinstance(error, ProviderError):
        return error
    if isinstance(error, status_error_cls):
        status_code = error.status_code
        kind = classify_status(status_code)
    elif isinstance(error, connection_error_cls):
        # includes the SDK timeout errors
        kind = ProviderErrorKind.TRANSIENT
    else:
        # response validation and decoding failures
        kind = ProviderErrorKind.MALFORMED

    logger.warning(
        f"{provider} request failed [{type(error).__name__}] status={status_code} kind={kind.value}: {error}"
    )
    return ProviderError(kind, f"{provider}: {error}", error, status_code)


def map_openai_error(error: Exception) -> ProviderError:
    return _map_sdk_error(
        error, "openai", openai.APIStatusError, openai.APIConnectionError
    )


def map_anthropic_error(error: Exception) -> ProviderError:
    return _map_sdk_error(
        error, "anthropic", anthropic.APIStatusError, anthropic.APIConnectionError
    )
