"""Unit tests for core/rewrite.py"""

import asyncio
import logging

from mdplantuml.core.render import server_url
from mdplantuml.core.models import Replacement, RewriteKind
from mdplantuml.core.rewrite import splice, transform
from mdplantuml.core.store import filename_for


BASIC_MD = "# Title\n\n```plantuml\nclass A { +m(): void }\n```\n"
BASE = "https://plantuml.example/plantuml"


def _images(tokens):
    return [c for t in tokens if t.type == "inline" for c in (t.children or []) if c.type == "image"]


def _run(parser, md, **options):
    tokens = parser.parse(md)
    return asyncio.run(transform(tokens, {"base_url": BASE, **options}))


def test_basic_render_writes_file(parser, static_dir, transport):
    """A plantuml fence becomes one image pointing at a stored diagram-*.png."""
    tokens = _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport)
    images = _images(tokens)
    assert len(images) == 1
    url = images[0].attrs["src"]
    name = filename_for("class A { +m(): void }\n", "png")
    assert url == f"/{name}"
    assert (static_dir / name).read_bytes() == transport.content
    assert not any(t.type == "fence" for t in tokens)
    assert len(transport.calls) == 1


def test_meta_becomes_title_and_alt(parser, static_dir, transport):
    """Fence metadata is carried as image title and alt text."""
    md = "```plantuml Class Overview\nclass A\n```\n"
    image = _images(_run(parser, md, output_dir=str(static_dir), transport=transport))[0]
    assert image.attrs["title"] == "Class Overview"
    assert image.content == "Class Overview"
    assert image.children[0].content == "Class Overview"


def test_inline_image_skips_network_and_disk(parser, static_dir, transport):
    """inline_image points at the server without fetching or touching storage."""
    tokens = _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport, inline_image=True)
    url = _images(tokens)[0].attrs["src"]
    assert url.startswith(f"{BASE}/png/")
    assert url == server_url("class A { +m(): void }\n", "png", BASE)
    assert transport.calls == []
    assert not static_dir.exists()


def test_inline_svg_embeds_markup(parser, static_dir, svg_transport):
    """svg + inline_svg replaces the fence with the returned SVG in a titled div."""
    md = "```plantuml Sequence\nA -> B\n```\n"
    tokens = _run(parser, md, output_dir=str(static_dir), transport=svg_transport,
                  output_format="svg", inline_svg=True)
    html_blocks = [t for t in tokens if t.type == "html_block"]
    assert len(html_blocks) == 1
    assert html_blocks[0].content.startswith('<div class="plantuml-diagram" title="Sequence"><svg')
    assert svg_transport.calls[0].startswith(f"{BASE}/svg/")
    assert not static_dir.exists()


def test_inline_svg_ignored_for_png(parser, static_dir, transport):
    """inline_svg only applies to svg output; png still stores a file."""
    tokens = _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport, inline_svg=True)
    assert _images(tokens)[0].attrs["src"].endswith(".png")


def test_render_failure_falls_back(parser, static_dir, failing_transport, caplog):
    """A failing transport yields a fallback image at the server URL and is logged."""
    with caplog.at_level(logging.WARNING):
        tokens = _run(parser, BASIC_MD, output_dir=str(static_dir), transport=failing_transport)
    url = _images(tokens)[0].attrs["src"]
    assert url == server_url("class A { +m(): void }\n", "png", BASE)
    assert "RenderFailure" in caplog.text


def test_non_success_status_falls_back(parser, static_dir, make_transport):
    """A 400 from the server degrades to the fallback and writes nothing."""
    tokens = _run(parser, BASIC_MD, output_dir=str(static_dir), transport=make_transport(status=400))
    assert _images(tokens)[0].attrs["src"].startswith(f"{BASE}/png/")
    assert list(static_dir.iterdir()) == []


def test_storage_failure_falls_back(parser, tmp_path, transport, caplog):
    """An unusable output directory degrades to the fallback without a render."""
    blocker = tmp_path / "static"
    blocker.write_text("not a dir")
    with caplog.at_level(logging.WARNING):
        tokens = _run(parser, BASIC_MD, output_dir=str(blocker), transport=transport)
    assert _images(tokens)[0].attrs["src"].startswith(f"{BASE}/png/")
    assert "StorageFailure" in caplog.text
    assert transport.calls == []


def test_duplicate_blocks_share_one_artifact(parser, static_dir, transport):
    """Byte-identical blocks point at one filename, rendered and written once."""
    md = BASIC_MD + "\nBetween.\n\n```plantuml\nclass A { +m(): void }\n```\n"
    tokens = _run(parser, md, output_dir=str(static_dir), transport=transport)
    urls = [i.attrs["src"] for i in _images(tokens)]
    assert len(urls) == 2 and urls[0] == urls[1]
    assert len(transport.calls) == 1
    assert len(list(static_dir.iterdir())) == 1


def test_existing_artifact_skips_render(parser, static_dir, transport):
    """A second run against the same output_dir never renders again."""
    _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport)
    _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport)
    assert len(transport.calls) == 1


def test_custom_prefix(parser, static_dir, transport):
    """url_prefix is joined without doubled separators."""
    tokens = _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport,
                  url_prefix="/assets/diagrams/")
    url = _images(tokens)[0].attrs["src"]
    assert url == "/assets/diagrams/" + filename_for("class A { +m(): void }\n", "png")
    assert "//" not in url


def test_includes_resolved_before_hashing(parser, tmp_path, static_dir, transport):
    """The stored name is derived from the include-expanded text."""
    (tmp_path / "part.puml").write_text("@startuml\nclass Part\n@enduml\n")
    md = "```plantuml\n!include part.puml\n```\n"
    tokens = _run(parser, md, output_dir=str(static_dir), transport=transport, include_path=str(tmp_path))
    assert _images(tokens)[0].attrs["src"] == "/" + filename_for("class Part\n", "png")


def test_other_blocks_untouched(sample_tokens, static_dir, transport):
    """Non-plantuml and empty plantuml fences are left as fences."""
    asyncio.run(transform(sample_tokens, {"output_dir": str(static_dir), "transport": transport}))
    fences = [t for t in sample_tokens if t.type == "fence"]
    assert [t.info for t in fences] == ["python", "plantuml"]
    assert len(_images(sample_tokens)) == 1


def test_no_diagrams_returns_same_tokens(parser, transport):
    """Documents without diagrams pass through unchanged."""
    tokens = parser.parse("# Just text\n")
    before = list(tokens)
    assert asyncio.run(transform(tokens, {"transport": transport})) == before
    assert transport.calls == []


def test_injected_logger_receives_messages(parser, static_dir, transport, caplog):
    """Per-block diagnostics go to the logger from the options."""
    logger = logging.getLogger("capture.rewrite")
    with caplog.at_level(logging.INFO, logger="capture.rewrite"):
        _run(parser, BASIC_MD, output_dir=str(static_dir), transport=transport, logger=logger)
    assert any(r.name == "capture.rewrite" and "saved" in r.getMessage() for r in caplog.records)


def test_splice_replaces_by_token_identity(parser):
    """splice swaps each keyed fence for its replacement run and keeps everything else."""
    tokens = parser.parse("Intro\n\n```plantuml\nA -> B\n```\n")
    fence = next(t for t in tokens if t.type == "fence")
    replacement = Replacement(RewriteKind.url, url="https://plantuml.example/x", title="T")
    result = splice(tokens, {id(fence): replacement})
    assert result is tokens
    assert [t.type for t in tokens] == ["paragraph_open", "inline", "paragraph_close"] * 2
    assert _images(tokens)[0].attrs == {"src": "https://plantuml.example/x", "alt": "", "title": "T"}
    assert tokens[3].map == fence.map
