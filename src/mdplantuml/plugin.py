"""markdown-it-py integration: a core rule that renders plantuml fences"""

import asyncio
from typing import Any, Mapping

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore

from mdplantuml.config import PlantumlOptions, resolve_options
from mdplantuml.core.rewrite import transform


def transform_sync(tokens: list, options: "PlantumlOptions | Mapping[str, Any] | None" = None) -> list:
    """Blocking wrapper around transform; must not be called from a running event loop."""
    return asyncio.run(transform(tokens, options))


def plantuml_plugin(md: MarkdownIt, **options: Any) -> None:
    """Register the plantuml core rule on md.

    Usage::

        md = MarkdownIt().use(plantuml_plugin, output_dir="site/static")
        html = md.render(text)

    Options are the PlantumlOptions fields. The rule blocks on its own event
    loop, so async hosts should await ``transform`` on the token stream instead.
    """
    opts = resolve_options(options)

    def _plantuml(state: StateCore) -> None:
        transform_sync(state.tokens, opts)

    md.core.ruler.push("plantuml", _plantuml)
