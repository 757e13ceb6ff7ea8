"""
Chain state machine types
"""

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from rag_toolchain.clients.base import BaseChatClient
from rag_toolchain.common.types import PromptMessage, SearchResult
from rag_toolchain.core.exceptions import ChainError
from rag_toolchain.retrievers.base import BaseRetriever
from .retry import RetryPolicy


class ChainState(str, Enum):
    IDLE = "idle"
    RETRIEVING = "retrieving"
    AUGMENTING = "augmenting"
    COMPLETING = "completing"
    DONE = "done"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (ChainState.DONE, ChainState.ERROR)


# The chat-history variant goes straight from IDLE to COMPLETING
TRANSITIONS = {
    ChainState.IDLE: {ChainState.RETRIEVING, ChainState.COMPLETING, ChainState.ERROR},
    ChainState.RETRIEVING: {ChainState.AUGMENTING, ChainState.ERROR},
    ChainState.AUGMENTING: {ChainState.COMPLETING, ChainState.ERROR},
    ChainState.COMPLETING: {ChainState.DONE, ChainState.ERROR},
    ChainState.DONE: set(),
    ChainState.ERROR: set(),
}

RetrievalErrorPolicy = Literal["raise", "continue"]


class ChainConfig(BaseModel):
    """Immutable chain wiring, built once and shared by every invocation"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    system_prompt: Optional[PromptMessage] = Field(default=None, description="Optional leading system message")
    chat_client: BaseChatClient
    retriever: Optional[BaseRetriever] = Field(default=None, description="Absent for the chat-history chain")
    on_retrieval_error: RetrievalErrorPolicy = Field(
        default="raise", description="'continue' answers without context when retrieval fails")
    retry: Optional[RetryPolicy] = Field(default=None, description="Per-stage retry of retriable errors")


class ChainRun(BaseModel):
    """
    Record of a single chain invocation.

    Holds everything the invocation produced: the states it went through,
    the retrieved context, the conversation sent to the chat client and the
    response or error. A new ChainRun is created per call, so concurrent
    invocations of one chain never share mutable state.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    user_message: PromptMessage
    states: List[ChainState] = Field(default_factory=lambda: [ChainState.IDLE])
    context: List[SearchResult] = Field(default_factory=list)
    conversation: List[PromptMessage] = Field(default_factory=list)
    response: Optional[PromptMessage] = None
    error: Optional[ChainError] = None
    retrieval_error: Optional[BaseException] = Field(
        default=None, description="Retrieval failure absorbed by the 'continue' policy")
    attempts: Dict[ChainState, int] = Field(default_factory=dict, description="Calls made per stage")

    @property
    def state(self) -> ChainState:
        return self.states[-1]

    def transition(self, state: ChainState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"invalid chain transition {self.state.value} -> {state.value}")
        self.states.append(state)

    def complete(self, response: PromptMessage) -> None:
        self.transition(ChainState.DONE)
        self.response = response

    def fail(self, cause: BaseException) -> ChainError:
        """Move to ERROR and build the error tagged with the failing stage"""
        error = ChainError(self.state, cause, run=self)
        if not self.state.terminal:
            self.states.append(ChainState.ERROR)
        self.error = error
        return error
