import logging

import pytest
from loguru import logger

from rag_toolchain.core.config.logging import init_logging
from rag_toolchain.core.config.settings import ProjectSettings
from rag_toolchain.core.exceptions import (
    BackendUnavailable,
    Cancelled,
    ChainError,
    ConfigurationError,
    DimensionMismatch,
    ErrorKey,
    NotFound,
    ProviderError,
    ProviderErrorKind,
    get_error_message,
)
from rag_toolchain.chains.retry import is_retriable
from rag_toolchain.chains.types import ChainState


def make_settings(**values):
    values.setdefault("VECTOR_STORE_URL", None)
    return ProjectSettings(_env_file=None, **values)


def test_postgres_url_is_built_from_parts():
    settings = make_settings(
        POSTGRES_USER="rag", POSTGRES_PASSWORD="secret", POSTGRES_HOST="db", POSTGRES_PORT=6543,
        POSTGRES_DATABASE="vectors",
    )

    assert settings.POSTGRES_URL == "postgresql+asyncpg://rag:secret@db:6543/vectors"


def test_postgres_url_without_password():
    settings = make_settings(POSTGRES_USER="rag", POSTGRES_DATABASE="vectors")

    assert settings.POSTGRES_URL == "postgresql+asyncpg://rag@localhost:5432/vectors"


def test_explicit_vector_store_url_wins():
    settings = make_settings(VECTOR_STORE_URL="postgresql+asyncpg://x@y/z", POSTGRES_USER="rag")

    assert settings.POSTGRES_URL == "postgresql+asyncpg://x@y/z"


def test_postgres_url_absent_without_credentials():
    assert make_settings(POSTGRES_USER=None, POSTGRES_DATABASE=None).POSTGRES_URL is None


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DEFAULT_TOP_K", "9")

    assert make_settings().DEFAULT_TOP_K == 9


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    logger.remove()
    root.handlers[:] = [h for h in root.handlers if type(h).__name__ != "_InterceptHandler"]
    root.setLevel(level)


def test_init_logging_routes_stdlib_into_loguru(tmp_path, restore_logging):
    init_logging(level="DEBUG", log_dir=str(tmp_path))

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert type(root.handlers[0]).__name__ == "_InterceptHandler"
    assert logging.getLogger("httpx").level == logging.WARNING

    messages = []
    logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    logging.getLogger("rag_toolchain.test").info("stdlib record")

    assert "stdlib record" in messages
    assert (tmp_path / "rag_toolchain.log").exists()


def test_error_messages_include_detail():
    error = NotFound("42")

    assert error.error_key == ErrorKey.RECORD_NOT_FOUND
    assert str(error) == f"{get_error_message(ErrorKey.RECORD_NOT_FOUND)} id=42"


def test_configuration_error_key():
    assert ConfigurationError("x").error_key == ErrorKey.INVALID_CONFIGURATION
    assert ConfigurationError("x", ErrorKey.MISSING_API_KEY).error_key == ErrorKey.MISSING_API_KEY


def test_unknown_language_falls_back_to_english():
    assert get_error_message(ErrorKey.CANCELLED, lang="fr") == get_error_message(ErrorKey.CANCELLED)


def test_dimension_mismatch_carries_sizes():
    error = DimensionMismatch(1536, 3)

    assert (error.expected, error.actual) == (1536, 3)
    assert not error.retriable


@pytest.mark.parametrize("error, retriable", [
    (ProviderError(ProviderErrorKind.RATE_LIMITED), True),
    (ProviderError(ProviderErrorKind.TRANSIENT), True),
    (ProviderError(ProviderErrorKind.UNAUTHORIZED), False),
    (ProviderError(ProviderErrorKind.MALFORMED), False),
    (BackendUnavailable("down"), True),
    (Cancelled("stop"), False),
    (NotFound("1"), False),
    (KeyError("x"), False),
])
def test_is_retriable(error, retriable):
    assert is_retriable(error) is retriable


def test_chain_error_kind_and_retriable_follow_the_cause():
    provider_failure = ChainError(ChainState.COMPLETING, ProviderError(ProviderErrorKind.RATE_LIMITED))
    store_failure = ChainError(ChainState.RETRIEVING, BackendUnavailable("down"))
    other_failure = ChainError(ChainState.RETRIEVING, KeyError("x"))

    assert provider_failure.kind == ProviderErrorKind.RATE_LIMITED
    assert provider_failure.retriable
    assert store_failure.kind is BackendUnavailable
    assert store_failure.retriable
    assert other_failure.kind is KeyError
    assert not other_failure.retriable
    assert "stage=completing" in str(provider_failure)
