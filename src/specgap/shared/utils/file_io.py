"""Async file I/O."""

from pathlib import Path

import aiofiles
import aiofiles.os


async def read_text_async(path: str | Path, encoding: str = "utf-8") -> str:
    """
    Read a text file asynchronously.

    Decoding is strict: callers decide how an undecodable file is reported.

    Raises:
        OSError: File missing or unreadable
        UnicodeDecodeError: File is not valid text in the given encoding
    """
    async with aiofiles.open(Path(path), encoding=encoding) as f:
        return await f.read()


async def is_file_async(path: str | Path) -> bool:
    return await aiofiles.os.path.isfile(str(path))


async def is_dir_async(path: str | Path) -> bool:
    return await aiofiles.os.path.isdir(str(path))
