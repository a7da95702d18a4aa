"""Batch pipeline: render every markdown file under a path into an output directory"""

import asyncio
from pathlib import Path

from mdplantuml.config import PlantumlOptions
from mdplantuml.core.export import render_html, rewrite_markdown
from mdplantuml.core.includes import resolve_includes
from mdplantuml.core.parse import discover_files
from mdplantuml.core.render import server_url


OUTPUT_SUFFIX = {"html": ".html", "md": ".md"}


async def _render_file(src: Path, dest: Path, opts: PlantumlOptions, fmt: str) -> None:
    source = src.read_text(encoding='utf-8')
    if fmt == "html":
        out = await render_html(source, opts)
    else:
        out = await rewrite_markdown(source, opts)
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(out, encoding='utf-8')


def run_render(
    path: str,
    opts: PlantumlOptions,
    out_dir: Path,
    fmt: str = "html",
    ) -> list[tuple[Path, Path]]:
    """Render path (file or directory) into out_dir. Returns (source_path, output_path) pairs.

    Output mirrors the source layout relative to path; fmt is "html" or "md".
    """
    if fmt not in OUTPUT_SUFFIX:
        raise ValueError(f"Unknown output type {fmt!r}; use 'html' or 'md'")
    root = Path(path)
    results = []
    for p in discover_files(root):
        rel = p.relative_to(root) if root.is_dir() else Path(p.name)
        dest = out_dir / rel.with_suffix(OUTPUT_SUFFIX[fmt])
        try:
            asyncio.run(_render_file(p, dest, opts, fmt))
        except Exception as e:
            raise RuntimeError(f"Failed to render {p}: {e}") from e
        results.append((p, dest))
    return results


def run_url(path: Path, opts: PlantumlOptions) -> str:
    """Resolve includes in a .puml file relative to its own directory and return its server URL."""
    code = path.read_text(encoding='utf-8')
    resolved = asyncio.run(resolve_includes(code, path.parent, opts.max_include_depth, opts.log))
    return server_url(resolved, opts.output_format, opts.base_url)
