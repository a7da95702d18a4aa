"""Per-block pipelines and the token-stream transform.

Every matched fence runs its own pipeline concurrently:

    resolve includes -> direct URL                  (inline_image)
    resolve includes -> render -> embed SVG         (svg + inline_svg)
    resolve includes -> cache check -> render -> write -> relative URL
    any failure      -> fallback server URL

Pipelines only produce Replacement values. The token list is spliced once,
after every pipeline has settled, so no index is ever held across an await.
"""

import asyncio
from typing import Any, Mapping, Optional

from markdown_it.token import Token

from mdplantuml.config import PlantumlOptions, resolve_options
from mdplantuml.core.includes import resolve_includes
from mdplantuml.core.models import DiagramBlock, Replacement, RewriteKind, svg_container
from mdplantuml.core.parse import find_diagrams
from mdplantuml.core.render import render, server_url
from mdplantuml.core.store import exists, filename_for, public_url, write
from mdplantuml.errors import PlantumlError


async def _render_and_store(code: str, name: str, opts: PlantumlOptions) -> str:
    """Render and write name unless it is already on disk; returns name."""
    if await exists(opts.output_dir, name):
        opts.log.info("Cache hit, using existing file: %s", name)
        return name
    data = await render(code, opts.output_format, opts.base_url, opts.transport)
    await write(opts.output_dir, name, data)
    opts.log.info("PlantUML diagram saved: %s (%.1f KB)", name, len(data) / 1024)
    return name


async def _store(code: str, opts: PlantumlOptions, inflight: dict[str, asyncio.Future]) -> str:
    """Share one render/write per filename across the pipelines of a single run."""
    name = filename_for(code, opts.output_format)
    task = inflight.get(name)
    if task is None:
        task = inflight[name] = asyncio.ensure_future(_render_and_store(code, name, opts))
    return await task


async def process_block(
    block: DiagramBlock,
    opts: PlantumlOptions,
    inflight: Optional[dict[str, asyncio.Future]] = None,
    ) -> Replacement:
    """Run one block's pipeline; never raises, failures yield a fallback Replacement."""
    inflight = {} if inflight is None else inflight
    code = block.code
    try:
        code = await resolve_includes(block.code, opts.include_path, opts.max_include_depth, opts.log)

        if opts.inline_image:
            url = server_url(code, opts.output_format, opts.base_url)
            return Replacement(RewriteKind.url, url=url, title=block.meta)

        if opts.output_format == "svg" and opts.inline_svg:
            data = await render(code, "svg", opts.base_url, opts.transport)
            svg = data.decode("utf-8")
            opts.log.info("PlantUML SVG inlined (%.1f KB)", len(svg) / 1024)
            return Replacement(RewriteKind.inline, markup=svg_container(svg, block.meta), title=block.meta)

        name = await _store(code, opts, inflight)
        return Replacement(RewriteKind.file, url=public_url(opts.url_prefix, name), title=block.meta)

    except PlantumlError as e:
        opts.log.warning("%s processing PlantUML block: %s", type(e).__name__, e)
    except Exception as e:
        opts.log.exception("Unexpected error processing PlantUML block: %s", e)

    return Replacement(
        RewriteKind.fallback,
        url=server_url(code, opts.output_format, opts.base_url),
        title=block.meta,
    )


async def run_blocks(blocks: list[DiagramBlock], opts: PlantumlOptions) -> list[Replacement]:
    """Run all block pipelines concurrently; results align with blocks."""
    inflight: dict[str, asyncio.Future] = {}
    return list(await asyncio.gather(*(process_block(b, opts, inflight) for b in blocks)))


def _place(replacement: Replacement, original: Token) -> list[Token]:
    """Give replacement tokens the original fence's source map and nesting level."""
    new = replacement.to_tokens()
    for tok in new:
        tok.map = original.map
        tok.level = original.level
    if len(new) == 3:
        new[1].level = original.level + 1
    return new


def splice(tokens: list[Token], replacements: dict[int, Replacement]) -> list[Token]:
    """Replace fences (keyed by id) in a single pass, mutating tokens in place."""
    out: list[Token] = []
    for tok in tokens:
        hit = replacements.get(id(tok))
        if hit is None:
            out.append(tok)
        else:
            out.extend(_place(hit, tok))
    tokens[:] = out
    return tokens


async def transform(
    tokens: list[Token],
    options: "PlantumlOptions | Mapping[str, Any] | None" = None,
    ) -> list[Token]:
    """Rewrite every plantuml fence in tokens. Mutates and returns tokens."""
    opts = resolve_options(options)
    blocks = find_diagrams(tokens)
    if not blocks:
        return tokens
    results = await run_blocks(blocks, opts)
    return splice(tokens, {id(b.token): r for b, r in zip(blocks, results)})
