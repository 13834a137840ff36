from __future__ import annotations

from pathlib import Path

from core.domain.models import CodeFile
from core.services.weaver import FALLBACK_SHELL, PreviewBuilder, assemble_preview, find_entry_file

_INDEX = """<!DOCTYPE html>
<html>
<head>
  <link rel="stylesheet" href="style.css">
</head>
<body>
  <h1>Hi</h1>
  <script src="app.js"></script>
</body>
</html>"""


def _files() -> list[CodeFile]:
    return [
        CodeFile(name="index.html", content=_INDEX, language="html"),
        CodeFile(name="style.css", content="h1 { color: red; }", language="css"),
        CodeFile(name="app.js", content="console.log('up');", language="javascript"),
    ]


def test_assemble_inlines_stylesheet_and_removes_link() -> None:
    document = assemble_preview(_files())

    assert 'href="style.css"' not in document
    assert "<style>\n/* Source: style.css */\nh1 { color: red; }\n</style>\n</head>" in document


def test_assemble_inlines_script_before_body_close() -> None:
    document = assemble_preview(_files())

    assert 'src="app.js"' not in document
    assert "<script>\n/* Source: app.js */\nconsole.log('up');\n</script>\n</body>" in document


def test_assemble_without_html_uses_fallback_shell() -> None:
    files = [CodeFile(name="main.js", content="run()", language="javascript")]
    document = assemble_preview(files)

    assert document.startswith("<!DOCTYPE html>")
    assert "No index.html found" in document
    assert "/* Source: main.js */" in document
    assert find_entry_file(files) is None
    assert FALLBACK_SHELL.count("</body>") == 1


def test_entry_file_prefers_index_html() -> None:
    files = [
        CodeFile(name="about.html", content="<p>about</p>"),
        CodeFile(name="index.html", content="<p>home</p>"),
    ]
    assert find_entry_file(files).name == "index.html"


def test_preview_builder_revokes_previous_build(tmp_path: Path) -> None:
    builder = PreviewBuilder(tmp_path)
    first = builder.build(_files())
    assert first.path.is_file()
    assert first.uri.startswith("file://")

    second = builder.build(_files())
    assert first.revoked is True
    assert not first.path.exists()
    assert second.path.is_file()
    assert builder.current is second

    builder.revoke()
    assert second.revoked is True
    assert builder.current is None
    second.revoke()
