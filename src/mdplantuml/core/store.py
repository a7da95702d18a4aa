"""Content-addressed artifact storage under the output directory"""

import os
import re
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from mdplantuml.core.utils.hashing import sha256
from mdplantuml.errors import StorageFailure


FILENAME_PREFIX = "diagram-"


def filename_for(code: str, fmt: str) -> str:
    """Return diagram-<sha256>.<fmt>; identical code and format always give the same name."""
    return f"{FILENAME_PREFIX}{sha256(code)}.{fmt}"


def public_url(url_prefix: str, filename: str) -> str:
    """Join prefix and filename with exactly one separator and no doubled slashes anywhere."""
    prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"
    return re.sub(r"/{2,}", "/", prefix + filename)


async def exists(output_dir: str | Path, name: str) -> bool:
    """Create output_dir if needed, then report whether name is already stored."""
    try:
        await aiofiles.os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise StorageFailure(str(output_dir), f"Cannot create output directory {output_dir}: {e}") from e
    return await aiofiles.os.path.exists(Path(output_dir) / name)


async def write(output_dir: str | Path, name: str, data: bytes) -> str:
    """Write data as name via a temp file and atomic replace; safe to repeat concurrently."""
    path = Path(output_dir) / name
    tmp = path.with_name(f".{name}.{os.getpid()}.{uuid.uuid4().hex}.tmp")
    try:
        async with aiofiles.open(tmp, mode="wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp, path)
    except OSError as e:
        if await aiofiles.os.path.exists(tmp):
            await aiofiles.os.remove(tmp)
        raise StorageFailure(str(path), f"Cannot write {path}: {e}") from e
    return name
