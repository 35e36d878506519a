"""Heuristics for reading the container entry command out of a Dockerfile."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Optional, Tuple

_INSTRUCTION = re.compile(r"^(CMD|ENTRYPOINT)\s+(.+)$")

# First match wins; ``sh`` is last because it is a substring of ``bash``.
_INTERPRETER_RULES: Tuple[Tuple[str, str], ...] = (
    ("python", "python"),
    ("perl", "perl"),
    ("Rscript", "R"),
    ("matlab", "matlab"),
    ("bash", "bash"),
    ("sh", "bash"),
)


@dataclass(frozen=True)
class DockerCommand:
    command: str
    interpreter: Optional[str] = None


def detect_interpreter(command: str) -> Optional[str]:
    for needle, interpreter in _INTERPRETER_RULES:
        if needle in command:
            return interpreter
    return None


def extract_dockerfile_cmd(content: str | None) -> Optional[DockerCommand]:
    """Return the first ``CMD``/``ENTRYPOINT`` of a Dockerfile as a shell command.

    Exec form (``CMD ["python", "app.py"]``) is flattened into a space separated
    string; shell form is returned verbatim.
    """
    if not content:
        return None

    for line in content.splitlines():
        match = _INSTRUCTION.match(line.strip())
        if not match:
            continue
        body = match.group(2).strip()
        command = _flatten_exec_form(body) if body.startswith("[") else body
        if not command:
            return None
        return DockerCommand(command=command, interpreter=detect_interpreter(command))
    return None


def _flatten_exec_form(body: str) -> str:
    try:
        parts = json.loads(body)
    except json.JSONDecodeError:
        parts = [token.strip().strip('"') for token in body.strip("[]").split(",")]
    if not isinstance(parts, list):
        return ""
    return " ".join(str(part) for part in parts if str(part).strip())


__all__ = ["DockerCommand", "detect_interpreter", "extract_dockerfile_cmd"]
