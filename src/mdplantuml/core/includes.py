"""Recursive expansion of !include and ::include{file=...} directives.

Only ``.puml`` fragment targets are expanded. Each fragment is resolved
relative to its own directory, its @startuml/@enduml framing lines are
dropped, and the trimmed result replaces the directive text. A directive
whose target cannot be read, would re-enter a file already on the current
include chain, or would nest deeper than ``max_depth`` is left as-is.

Both directive forms are matched in one left-to-right pass, so text spliced
in from a fragment is never rescanned against the including file's directory.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

import aiofiles

from mdplantuml.errors import IncludeReadFailure


INCLUDE_RE = re.compile(
    r'!include[ \t]+(?P<line>.+)$'
    r'|::include\{file=(?P<file>[^}]+)\}',
    re.MULTILINE,
)
FRAMING_RE = re.compile(r'^[ \t]*@(?:startuml|enduml)[ \t]*$', re.MULTILINE)
FRAGMENT_SUFFIX = '.puml'

log = logging.getLogger(__name__)

# (fragment path, include chain) -> expanded text, shared within one resolve_includes call
FragmentCache = dict[tuple[Path, tuple[Path, ...]], asyncio.Future]


def strip_framing(text: str) -> str:
    """Remove @startuml/@enduml lines and surrounding whitespace."""
    return FRAMING_RE.sub('', text).strip()


async def resolve_includes(
    text: str,
    base_path: str | Path,
    max_depth: int = 32,
    logger: Optional[logging.Logger] = None,
    ) -> str:
    """Return text with every readable fragment include expanded in place."""
    return await _resolve(text, Path(base_path), (), max_depth, logger or log, {})


async def load_fragment(
    target: str,
    base: Path,
    chain: tuple[Path, ...] = (),
    max_depth: int = 32,
    logger: Optional[logging.Logger] = None,
    cache: Optional[FragmentCache] = None,
    ) -> str:
    """Read and fully expand one fragment file. Raises IncludeReadFailure.

    Repeated includes of the same file under the same chain share one
    read and expansion through cache.
    """
    logger = logger or log
    full = (base / target).resolve()
    if full in chain:
        raise IncludeReadFailure(target, "include cycle")
    if len(chain) >= max_depth:
        raise IncludeReadFailure(target, f"nested deeper than {max_depth} levels")

    cache = {} if cache is None else cache
    key = (full, chain)
    task = cache.get(key)
    if task is None:
        task = cache[key] = asyncio.ensure_future(_read_and_expand(target, full, chain, max_depth, logger, cache))
    return await task


async def _read_and_expand(
    target: str,
    full: Path,
    chain: tuple[Path, ...],
    max_depth: int,
    logger: logging.Logger,
    cache: FragmentCache,
    ) -> str:
    try:
        async with aiofiles.open(full, mode='r', encoding='utf-8') as f:
            raw = await f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IncludeReadFailure(target, str(e)) from e

    nested = await _resolve(raw, full.parent, chain + (full,), max_depth, logger, cache)
    logger.debug("PlantUML include processed: %s", full)
    return strip_framing(nested)


async def _resolve(
    text: str,
    base: Path,
    chain: tuple[Path, ...],
    max_depth: int,
    logger: logging.Logger,
    cache: FragmentCache,
    ) -> str:
    """Substitute every directive in one pass; unresolvable directives stay verbatim."""
    matches = list(INCLUDE_RE.finditer(text))
    if not matches:
        return text

    async def _one(target: str) -> Optional[str]:
        if not target.endswith(FRAGMENT_SUFFIX):
            return None
        try:
            return await load_fragment(target, base, chain, max_depth, logger, cache)
        except IncludeReadFailure as e:
            logger.warning("%s", e)
            return None

    expansions = await asyncio.gather(*(_one((m.group('line') or m.group('file')).strip()) for m in matches))

    parts = []
    pos = 0
    for m, expanded in zip(matches, expansions):
        parts.append(text[pos:m.start()])
        parts.append(m.group(0) if expanded is None else expanded)
        pos = m.end()
    parts.append(text[pos:])
    return ''.join(parts)
