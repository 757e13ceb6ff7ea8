"""
Model tokenizers used to measure and split text
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import tiktoken

from rag_toolchain.core.exceptions import TokenizationError

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


class BaseTokenizer(ABC):
    """Base abstract class for tokenizers"""

    @abstractmethod
    def tokenize(self, text: str) -> List[bytes]:
        """
        Split text into tokens

        Args:
            text: Text to tokenize

        Returns:
            The UTF-8 bytes of each token, in order. Joined together they
            reproduce ``text.encode("utf-8")`` exactly.
        """
        raise NotImplementedError

    def count_tokens(self, text: str) -> int:
        return len(self.tokenize(text))


class TiktokenTokenizer(BaseTokenizer):
    """Tokenizer backed by a tiktoken encoding"""

    def __init__(self, encoding_name: Optional[str] = None, model_name: Optional[str] = None):
        try:
            if encoding_name:
                self.encoding = tiktoken.get_encoding(encoding_name)
            elif model_name:
                self.encoding = tiktoken.encoding_for_model(model_name)
            else:
                self.encoding = tiktoken.get_encoding(DEFAULT_ENCODING)
        except (KeyError, ValueError) as e:
            raise TokenizationError(
                f"unknown encoding or model: {encoding_name or model_name}", e
            ) from e
        logger.debug(f"Loaded tiktoken encoding: {self.encoding.name}")

    def tokenize(self, text: str) -> List[bytes]:
        try:
            # tiktoken silently replaces lone surrogates, reject them instead
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise TokenizationError("text is not valid unicode", e) from e

        # special token markers in user text are plain text here
        token_ids = self.encoding.encode(text, disallowed_special=())
        return self.encoding.decode_tokens_bytes(token_ids)
