"""Prompt and message catalog backed by a JSON file.

Entries are ``string.Template`` strings addressed by dotted keys
(``oracle.plan``). Long prompts may be stored as a list of lines.
"""
from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any, Iterator


DEFAULT_PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


class PromptCatalog:
    """Lazily loaded catalog, reloaded when the file's mtime changes."""

    def __init__(self, path: str | Path = DEFAULT_PROMPTS_PATH):
        self.path = Path(path)
        self._payload: dict[str, Any] | None = None
        self._mtime_ns: int | None = None

    def _load(self) -> dict[str, Any]:
        mtime_ns = self.path.stat().st_mtime_ns
        if self._payload is not None and self._mtime_ns == mtime_ns:
            return self._payload

        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Prompt catalog must be a JSON object: {self.path}")
        self._payload = payload
        self._mtime_ns = mtime_ns
        return payload

    def template(self, key: str) -> str:
        node: Any = self._load()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(f"Prompt key not found: {key}")
            node = node[part]
        if isinstance(node, list) and all(isinstance(line, str) for line in node):
            return "\n".join(node)
        if not isinstance(node, str):
            raise TypeError(f"Prompt key must map to a string: {key}")
        return node

    def render(self, key: str, **values: Any) -> str:
        template = Template(self.template(key))
        try:
            return template.substitute(**values)
        except KeyError as exc:
            raise KeyError(
                f"Missing template value '{exc.args[0]}' for prompt '{key}'"
            ) from exc

    def keys(self) -> Iterator[str]:
        """Dotted keys of every renderable entry."""

        def walk(node: Any, prefix: str) -> Iterator[str]:
            for name, child in node.items():
                dotted = f"{prefix}{name}"
                if isinstance(child, dict):
                    yield from walk(child, f"{dotted}.")
                else:
                    yield dotted

        return walk(self._load(), "")

    def clear(self) -> None:
        self._payload = None
        self._mtime_ns = None


catalog = PromptCatalog()


def render_prompt(key: str, **values: Any) -> str:
    return catalog.render(key, **values)


def clear_prompt_cache() -> None:
    catalog.clear()
