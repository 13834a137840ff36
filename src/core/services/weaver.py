"""Code Weaver preview build.

Assembles the generated file set into one self-contained HTML document:
stylesheets and scripts are inlined, and tags that referenced them by name are
removed. Matching is by literal file name (no path resolution, no markup
parser); this is a best-effort preview, not a bundler.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from core.domain.models import CodeFile

logger = logging.getLogger(__name__)

FALLBACK_SHELL = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Preview</title>
    <style>body { font-family: sans-serif; padding: 20px; color: #333; background: #fff; }</style>
</head>
<body>
    <div id="root"></div>
    <div id="app"></div>
    <!-- No index.html found. Injecting scripts/styles into a generic container. -->
</body>
</html>"""


def find_entry_file(files: Sequence[CodeFile]) -> CodeFile | None:
    """`index.html` first, then any `.html` file."""

    for f in files:
        if f.name.lower().endswith("index.html"):
            return f
    for f in files:
        if f.name.lower().endswith(".html"):
            return f
    return None


def _inject(document: str, closing_tag: str, block: str) -> str:
    if closing_tag in document:
        return document.replace(closing_tag, f"{block}\n{closing_tag}", 1)
    return document + block


def assemble_preview(files: Sequence[CodeFile]) -> str:
    entry = find_entry_file(files)
    document = entry.content if entry else FALLBACK_SHELL

    for css in (f for f in files if f.name.lower().endswith(".css")):
        link_re = re.compile(rf"<link[^>]+href=[\"']{re.escape(css.name)}[\"'][^>]*>", re.IGNORECASE)
        document = link_re.sub("", document)
        document = _inject(document, "</head>", f"<style>\n/* Source: {css.name} */\n{css.content}\n</style>")

    for js in (f for f in files if f.name.lower().endswith(".js")):
        script_re = re.compile(
            rf"<script[^>]+src=[\"']{re.escape(js.name)}[\"'][^>]*>.*?</script>",
            re.IGNORECASE,
        )
        document = script_re.sub("", document)
        document = _inject(document, "</body>", f"<script>\n/* Source: {js.name} */\n{js.content}\n</script>")

    return document


@dataclass
class PreviewHandle:
    """Transient local resource holding an assembled preview."""

    path: Path
    revoked: bool = False

    @property
    def uri(self) -> str:
        return self.path.resolve().as_uri()

    def revoke(self) -> None:
        if self.revoked:
            return
        self.path.unlink(missing_ok=True)
        self.revoked = True


class PreviewBuilder:
    """Keeps at most one live preview; each build revokes the previous one."""

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory
        self._current: PreviewHandle | None = None

    @property
    def current(self) -> PreviewHandle | None:
        return self._current

    def build(self, files: Sequence[CodeFile]) -> PreviewHandle:
        document = assemble_preview(files)
        self.revoke()

        if self._directory is not None:
            self._directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix="weaver-preview-",
            suffix=".html",
            dir=str(self._directory) if self._directory else None,
        )
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(document)

        self._current = PreviewHandle(path=Path(name))
        logger.debug("Preview built at %s", name)
        return self._current

    def revoke(self) -> None:
        if self._current is not None:
            self._current.revoke()
            self._current = None
