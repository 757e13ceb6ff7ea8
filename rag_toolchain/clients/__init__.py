from .base import ChatConfig, BaseChatClient, ChatCompletionStream
from .errors import classify_status, map_openai_error, map_anthropic_error
from .scripted import ScriptedChatClient

__all__ = [
    "ChatConfig",
    "BaseChatClient",
    "ChatCompletionStream",
    "classify_status",
    "map_openai_error",
    "map_anthropic_error",
    "ScriptedChatClient",
]
