# tests/conftest.py
# ============================================================
# Shared Fixtures — fake external tools
# ============================================================
# Two flavours of fake tool:
#   - make_script: a real executable shell script in tmp_path,
#     for tests that exercise subprocess behaviour
#   - FakeTools: a callable standing in for ToolInvoker.invoke
#     on a MagicMock, for pipeline/orchestrator tests
#
# Run:
#   pytest tests/ -v
# ============================================================

import json
import stat
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest

from docflow.errors import ErrorKind
from docflow.tools.invoker import ToolInvoker, ToolResult


# ============================================================
# Executable scripts
# ============================================================

@pytest.fixture
def make_script(tmp_path) -> Callable[[str, str], Path]:
    """Factory writing an executable /bin/sh script into tmp_path/bin."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> Path:
        script = bin_dir / name
        script.write_text("#!/bin/sh\n" + body + "\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


# Writes "text of <input name>" to the path following -o
FAKE_EXTRACTOR = """
if [ "$1" = "-h" ]; then echo "usage: doc-to-text <input> -o <output>"; exit 0; fi
out=""
prev=""
for arg in "$@"; do
  if [ "$prev" = "-o" ]; then out="$arg"; fi
  prev="$arg"
done
printf 'text of %s\\n' "$(basename "$1")" > "$out"
"""

# Writes a placeholder audio file to the last argument
FAKE_FFMPEG = """
if [ "$1" = "-h" ]; then echo "ffmpeg version 6.1 Copyright (c) the FFmpeg developers" >&2; exit 0; fi
for last; do :; done
echo audio > "$last"
"""


# ============================================================
# In-process fake tools
# ============================================================

class FakeTools:
    """
    Replacement for ToolInvoker.invoke.

    The extractor writes "text of <input name>" to its -o target.
    The LLM caller answers with `llm_responses[<input name>]`, looked
    up from the text it receives, or `default_llm_response`.
    """

    def __init__(self, llm_responses: Optional[dict] = None, default_llm_response: str = "review ok"):
        self.llm_responses = llm_responses or {}
        self.default_llm_response = default_llm_response
        self.calls: list[tuple[str, list[str]]] = []
        self.fail_extract_for: set[str] = set()

    def __call__(self, tool, args, timeout=None, interactive=False, cwd=None, env=None):
        args = [str(a) for a in args]
        self.calls.append((tool, args))

        if tool == "doc-to-text":
            name = Path(args[0]).name
            if name in self.fail_extract_for:
                return ToolResult(
                    tool, args, stderr="Error: unreadable document\n", returncode=2,
                    error_kind=ErrorKind.FAILED, error=f"{tool} exited with status 2",
                )
            target = Path(args[args.index("-o") + 1])
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f"text of {name}\n", encoding="utf-8")
            return ToolResult(tool, args, returncode=0)

        if tool == "llm-caller":
            text = args[-1]
            for name, response in self.llm_responses.items():
                if name in text:
                    return ToolResult(tool, args, stdout=response, returncode=0)
            return ToolResult(tool, args, stdout=self.default_llm_response, returncode=0)

        return ToolResult(tool, args, error_kind=ErrorKind.NOT_FOUND, error=f"{tool}: command not found")

    def count(self, tool: str) -> int:
        return sum(1 for called, _ in self.calls if called == tool)


def fenced(record: dict, prose: str = "Here is the extracted data:") -> str:
    """LLM style answer: prose followed by a ```json block."""
    return f"{prose}\n```json\n{json.dumps(record)}\n```\nLet me know if you need more."


@pytest.fixture
def fake_tools() -> FakeTools:
    return FakeTools()


@pytest.fixture
def mock_invoker(fake_tools) -> MagicMock:
    """A ToolInvoker mock whose invoke() is backed by FakeTools."""
    invoker = MagicMock(spec=ToolInvoker)
    invoker.invoke.side_effect = fake_tools
    invoker.probe.return_value = ToolResult("probe", ["-h"], stdout="usage", returncode=0)
    return invoker
