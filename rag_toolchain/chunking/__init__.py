from .base import ChunkConfig, BaseChunker, ChunkSequence
from .tokenizer import BaseTokenizer, TiktokenTokenizer
from .token import TokenChunker
from .character import CharacterChunker

__all__ = [
    "ChunkConfig",
    "BaseChunker",
    "ChunkSequence",
    "BaseTokenizer",
    "TiktokenTokenizer",
    "TokenChunker",
    "CharacterChunker",
]
