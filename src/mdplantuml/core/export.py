"""Document-level output: rewritten markdown source and rendered HTML"""

from typing import Any, Mapping

from mdplantuml.config import PlantumlOptions, resolve_options
from mdplantuml.core.models import DiagramBlock, Replacement
from mdplantuml.core.parse import find_diagrams, make_parser, split_frontmatter, split_lines
from mdplantuml.core.rewrite import run_blocks, transform


def _fence_prefix(line: str, markup: str) -> str:
    """Return the container prefix (indent, '> ', list marker) before the opening fence."""
    idx = line.find(markup)
    return line[:idx] if idx > 0 else ''


def _replace_lines(lines: list[str], block: DiagramBlock, replacement: Replacement) -> None:
    start, end = block.token.map
    prefix = _fence_prefix(lines[start], block.token.markup)
    # continuation lines of a list item are indented, not re-marked
    cont = prefix if prefix.strip().startswith('>') or not prefix.strip() else ' ' * len(prefix)
    out = replacement.to_markdown().split('\n')
    lines[start:end] = [prefix + out[0] + '\n'] + [cont + line + '\n' for line in out[1:]]


async def rewrite_markdown(source: str, options: "PlantumlOptions | Mapping[str, Any] | None" = None) -> str:
    """Return source with each plantuml fence replaced by image markdown or raw SVG html."""
    opts = resolve_options(options)
    header, body = split_frontmatter(source)
    blocks = find_diagrams(make_parser(opts.parser_config).parse(body))
    if not blocks:
        return source
    results = await run_blocks(blocks, opts)

    lines = split_lines(body)
    # bottom-up so earlier line ranges stay valid
    for block, replacement in sorted(zip(blocks, results), key=lambda p: p[0].token.map[0], reverse=True):
        _replace_lines(lines, block, replacement)
    return header + ''.join(lines)


async def render_html(source: str, options: "PlantumlOptions | Mapping[str, Any] | None" = None) -> str:
    """Render markdown to HTML with plantuml fences transformed first."""
    opts = resolve_options(options)
    _, body = split_frontmatter(source)
    md = make_parser(opts.parser_config)
    env: dict = {}
    tokens = md.parse(body, env)
    await transform(tokens, opts)
    return md.renderer.render(tokens, md.options, env)
