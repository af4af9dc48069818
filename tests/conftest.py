import textwrap
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _no_config_from_env(monkeypatch):
    # matchers built without an explicit config read HMATCH_CONFIG
    monkeypatch.delenv("HMATCH_CONFIG", raising=False)


@pytest.fixture
def write_yaml(tmp_path: Path):
    """Writes dedented YAML text into tmp_path and returns the file path."""
    def _write(text: str, name: str = "hmatch.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
        return path
    return _write


PAGE_HTML = """
<!DOCTYPE html>
<html lang="en" id="html" class="html">
  <head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Document</title>
  </head>
    <!--
    multiline comment
    -->
  <body>
    <div id="bob" class="a1 a2 a3">
      <span class="span-class">hello</span>
    </div>
    <script></script>
    <script type=defer>
      const foo = true;
      function bar() {
        return !foo;
      }
    </script>
    <style>
      .body {
        background-color: green;
      }
    </style>
  </body>
</html>

"""


@pytest.fixture
def page_html() -> str:
    """Small but complete HTML page: doctype, comment, void tags, script and style."""
    return PAGE_HTML
