"""
Retrieval-augmented chat chain
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Union

from rag_toolchain.clients.base import BaseChatClient, ChatCompletionStream
from rag_toolchain.common.cancellation import CancellationScope, guarded
from rag_toolchain.common.types import PromptMessage
from rag_toolchain.core.config.settings import settings
from rag_toolchain.core.exceptions import Cancelled, ConfigurationError, RagToolchainError
from rag_toolchain.retrievers.base import BaseRetriever
from .retry import RetryPolicy
from .types import ChainConfig, ChainRun, ChainState, RetrievalErrorPolicy
from .utils import (
    as_human_message,
    as_system_message,
    build_context_message,
    build_conversation,
    run_stage,
)

logger = logging.getLogger(__name__)

UserMessage = Union[str, PromptMessage]


def resolve_top_k(k: Optional[int]) -> int:
    k = k if k is not None else settings.DEFAULT_TOP_K
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    return k


class ChainStream(ChatCompletionStream):
    """Streamed chain response; ``run`` records the invocation"""

    def __init__(self, fragments: AsyncIterator[str], run: ChainRun):
        super().__init__(fragments)
        self.run = run

    async def aclose(self) -> None:
        await super().aclose()
        # closed before the first fragment was requested
        if not self.run.state.terminal:
            self.run.fail(Cancelled("stream closed before the response completed"))


class RAGChainBuilder:
    """
    Fluent builder for RAGChain

    Example:
        ```python
        chain = (
            RAGChain.builder()
            .system_prompt("Answer using the supporting information provided")
            .chat_client(client)
            .retriever(store.as_retriever(embedder))
            .build()
        )
        ```
    """

    def __init__(self):
        self._system_prompt: Optional[PromptMessage] = None
        self._chat_client: Optional[BaseChatClient] = None
        self._retriever: Optional[BaseRetriever] = None
        self._on_retrieval_error: RetrievalErrorPolicy = "raise"
        self._retry: Optional[RetryPolicy] = None

    def system_prompt(self, prompt: UserMessage) -> "RAGChainBuilder":
        self._system_prompt = as_system_message(prompt)
        return self

    def chat_client(self, client: BaseChatClient) -> "RAGChainBuilder":
        self._chat_client = client
        return self

    def retriever(self, retriever: BaseRetriever) -> "RAGChainBuilder":
        self._retriever = retriever
        return self

    def on_retrieval_error(self, policy: RetrievalErrorPolicy) -> "RAGChainBuilder":
        self._on_retrieval_error = policy
        return self

    def retry(self, policy: Optional[RetryPolicy]) -> "RAGChainBuilder":
        self._retry = policy
        return self

    def build(self) -> "RAGChain":
        if self._chat_client is None:
            raise ConfigurationError("a chat client is required to build a RAG chain")
        if self._retriever is None:
            raise ConfigurationError("a retriever is required to build a RAG chain")
        return RAGChain(ChainConfig(
            system_prompt=self._system_prompt,
            chat_client=self._chat_client,
            retriever=self._retriever,
            on_retrieval_error=self._on_retrieval_error,
            retry=self._retry,
        ))


class RAGChain:
    """
    Answers a user message with context pulled from a retriever.

    Each invocation walks IDLE -> RETRIEVING -> AUGMENTING -> COMPLETING ->
    DONE, or ends in ERROR with a ChainError naming the failed stage. The
    retrieved records are formatted into a context message placed between
    the system prompt and the user's message.
    """

    def __init__(self, config: ChainConfig):
        if config.retriever is None:
            raise ConfigurationError("a retriever is required for a RAG chain")
        self.config = config

    @staticmethod
    def builder() -> RAGChainBuilder:
        return RAGChainBuilder()

    async def invoke(
        self,
        user_message: UserMessage,
        k: Optional[int] = None,
        *,
        cancellation: Optional[CancellationScope] = None,
    ) -> PromptMessage:
        """
        Run the chain and return the model's answer

        Args:
            user_message: The user's question
            k: Number of supporting records to retrieve, defaults to settings.DEFAULT_TOP_K
            cancellation: Optional deadline or cancellation signal

        Returns:
            The chat client's response, unmodified

        Raises:
            ChainError: If any stage failed or the run was cancelled
            ValueError: If k is less than 1 or the message is not from the user
        """
        run = await self.run(user_message, k, cancellation=cancellation)
        return run.response

    async def run(
        self,
        user_message: UserMessage,
        k: Optional[int] = None,
        *,
        cancellation: Optional[CancellationScope] = None,
    ) -> ChainRun:
        """Run the chain and return the full record of the invocation"""
        k = resolve_top_k(k)
        run = ChainRun(user_message=as_human_message(user_message))
        try:
            conversation = await self._augment(run, k, cancellation)
            run.transition(ChainState.COMPLETING)
            response = await run_stage(
                run, lambda: self.config.chat_client.complete(conversation),
                cancellation, self.config.retry,
            )
        except asyncio.CancelledError:
            run.fail(Cancelled("task cancelled"))
            raise
        except Exception as e:
            logger.error(f"RAG chain failed while {run.state.value}: {e}")
            raise run.fail(e) from e

        run.complete(response)
        return run

    async def stream(
        self,
        user_message: UserMessage,
        k: Optional[int] = None,
        *,
        cancellation: Optional[CancellationScope] = None,
    ) -> ChainStream:
        """
        Run retrieval and augmentation, then stream the model's answer

        Retrieval failures raise here. Completion failures and cancellation
        raise while iterating the returned stream.
        """
        k = resolve_top_k(k)
        run = ChainRun(user_message=as_human_message(user_message))
        try:
            conversation = await self._augment(run, k, cancellation)
            if cancellation is not None:
                cancellation.check()
        except asyncio.CancelledError:
            run.fail(Cancelled("task cancelled"))
            raise
        except Exception as e:
            logger.error(f"RAG chain failed while {run.state.value}: {e}")
            raise run.fail(e) from e

        run.transition(ChainState.COMPLETING)
        run.attempts[ChainState.COMPLETING] = 1
        inner = self.config.chat_client.stream(conversation)
        return ChainStream(self._stream_fragments(run, inner, cancellation), run)

    async def _augment(
        self,
        run: ChainRun,
        k: int,
        cancellation: Optional[CancellationScope],
    ) -> List[PromptMessage]:
        query = run.user_message.content

        run.transition(ChainState.RETRIEVING)
        try:
            context = await run_stage(
                run, lambda: self.config.retriever.retrieve(query, k),
                cancellation, self.config.retry,
            )
        except RagToolchainError as e:
            if self.config.on_retrieval_error != "continue" or isinstance(e, Cancelled):
                raise
            logger.warning(f"Retrieval failed, continuing without context: {e}")
            run.retrieval_error = e
            context = []

        run.transition(ChainState.AUGMENTING)
        run.context = list(context)
        run.conversation = build_conversation(
            self.config.system_prompt,
            build_context_message(run.context),
            run.user_message,
        )
        return run.conversation

    async def _stream_fragments(
        self,
        run: ChainRun,
        inner: ChatCompletionStream,
        cancellation: Optional[CancellationScope],
    ) -> AsyncIterator[str]:
        try:
            while True:
                try:
                    fragment = await guarded(inner.__anext__(), cancellation)
                except StopAsyncIteration:
                    break
                yield fragment
        except GeneratorExit:
            run.fail(Cancelled("stream closed before the response completed"))
            raise
        except asyncio.CancelledError:
            run.fail(Cancelled("task cancelled"))
            raise
        except Exception as e:
            logger.error(f"RAG chain stream failed: {e}")
            raise run.fail(e) from e
        finally:
            await inner.aclose()

        run.complete(inner.message)
