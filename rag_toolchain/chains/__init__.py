from .retry import RetryPolicy, is_retriable
from .types import ChainConfig, ChainRun, ChainState
from .utils import CONTEXT_HEADER, EMPTY_CONTEXT_PLACEHOLDER, build_context_message
from .rag import RAGChain, RAGChainBuilder, ChainStream
from .chat_history import ChatHistory, ChatHistoryChain

__all__ = [
    "RetryPolicy",
    "is_retriable",
    "ChainConfig",
    "ChainRun",
    "ChainState",
    "CONTEXT_HEADER",
    "EMPTY_CONTEXT_PLACEHOLDER",
    "build_context_message",
    "RAGChain",
    "RAGChainBuilder",
    "ChainStream",
    "ChatHistory",
    "ChatHistoryChain",
]
