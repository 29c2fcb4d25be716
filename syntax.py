from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Iterable, Union

_INVALID_IDENTIFIER_CHARS = re.compile(r"[^0-9A-Za-z_$]")


@dataclass(frozen=True)
class Line:
    text: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Blank:
    pass


@dataclass(frozen=True)
class Verbatim:
    """Text emitted exactly as given, without indentation."""

    text: str


@dataclass(frozen=True)
class Clause:
    head: str
    body: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Compound:
    clauses: tuple[Clause, ...]
    tail: str = "}"


Node = Union[Line, Comment, Blank, Verbatim, Compound]


def render_nodes(nodes: Iterable[Node], indent_width: int = 2, level: int = 0) -> list[str]:
    lines: list[str] = []
    for node in nodes:
        _render_node(node, lines, indent_width, level)
    return lines


def render_text(nodes: Iterable[Node], indent_width: int = 2) -> str:
    lines = render_nodes(nodes, indent_width=indent_width)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def _render_node(node: Node, lines: list[str], indent_width: int, level: int) -> None:
    pad = " " * (indent_width * level)
    if isinstance(node, Line):
        lines.append(pad + node.text)
    elif isinstance(node, Comment):
        lines.append(f"{pad}// {_single_line(node.text)}")
    elif isinstance(node, Blank):
        lines.append("")
    elif isinstance(node, Verbatim):
        lines.extend(node.text.split("\n"))
    elif isinstance(node, Compound):
        for clause in node.clauses:
            lines.append(pad + clause.head)
            for child in clause.body:
                _render_node(child, lines, indent_width, level + 1)
        lines.append(pad + node.tail)
    else:
        raise TypeError(f"Unsupported syntax node '{type(node).__name__}'.")


def _single_line(text: str) -> str:
    return " ".join(text.split())


def js_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=True)


def sanitize_identifier(name: str, fallback: str) -> str:
    cleaned = _INVALID_IDENTIFIER_CHARS.sub("_", name.strip())
    if not cleaned:
        return fallback
    if cleaned[0].isdigit():
        return f"_{cleaned}"
    return cleaned
