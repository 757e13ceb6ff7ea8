"""
Loader reading a single file as raw text
"""

import logging
from pathlib import Path
from typing import Union

import aiofiles

logger = logging.getLogger(__name__)


class SingleFileLoader:
    """Reads the whole content of one text file"""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    async def load(self) -> str:
        """
        Read the file

        Returns:
            The file content

        Raises:
            FileNotFoundError: If the file does not exist
        """
        if not self.path.is_file():
            raise FileNotFoundError(f"File not found: {self.path}")
        async with aiofiles.open(self.path, "r", encoding=self.encoding) as f:
            content = await f.read()
        logger.debug(f"Loaded {len(content)} characters from {self.path}")
        return content
