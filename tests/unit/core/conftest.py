"""Shared fixtures for core unit tests"""

import pytest
from markdown_it import MarkdownIt


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

```plantuml Class Overview
class A { +m(): void }
```

```python
print("hello")
```

```plantuml
```
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return MarkdownIt("gfm-like", options_update={"linkify": False})


@pytest.fixture(name="sample_tokens")
def sample_tokens_fixture(parser):
    return parser.parse(SAMPLE_MD)


@pytest.fixture(name="static_dir")
def static_dir_fixture(tmp_path):
    return tmp_path / "static"


@pytest.fixture(name="fragments")
def fragments_fixture(tmp_path):
    """Fragment tree: a.puml -> sub/b.puml -> sub/c.puml, all framed."""
    sub = tmp_path / "sub"
    sub.mkdir()
    (tmp_path / "a.puml").write_text("@startuml\n!include sub/b.puml\nclass A\n@enduml\n")
    (sub / "b.puml").write_text("@startuml\n!include c.puml\nclass B\n@enduml\n")
    (sub / "c.puml").write_text("@startuml\nclass C\n@enduml\n")
    return tmp_path
