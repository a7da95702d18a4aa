"""File discovery, frontmatter splitting, markdown-it setup, and fence matching"""

import re
from pathlib import Path

from markdown_it import MarkdownIt

from mdplantuml.core.models import DiagramBlock


FRONTMATTER_RE = re.compile(r'^---[ \t]*\n(.*?)\n---[ \t]*\n', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx'}
DIAGRAM_LANG = 'plantuml'


def make_parser(preset: str = 'gfm-like') -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def split_frontmatter(text: str) -> tuple[str, str]:
    """Return (raw_header, body); the header is passed through untouched, never parsed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        return m.group(0), text[m.end():]
    return '', text


def split_lines(text: str) -> list[str]:
    """Split on '\\n' only, keeping line ends, so indices match markdown-it token.map."""
    lines = text.split('\n')
    return [line + '\n' for line in lines[:-1]] + ([lines[-1]] if lines[-1] else [])


def split_info(info: str) -> tuple[str, str]:
    """Split a fence info string into (lang, meta)."""
    parts = info.strip().split(None, 1)
    if not parts:
        return '', ''
    return parts[0], parts[1].strip() if len(parts) > 1 else ''


def find_diagrams(tokens: list) -> list[DiagramBlock]:
    """Collect fences tagged exactly `plantuml` with a non-blank body, in document order."""
    blocks = []
    for tok in tokens:
        if tok.type != 'fence':
            continue
        lang, meta = split_info(tok.info)
        if lang == DIAGRAM_LANG and tok.content.strip():
            blocks.append(DiagramBlock(token=tok, code=tok.content, meta=meta))
    return blocks


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)
