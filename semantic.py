from __future__ import annotations

import logging

from blocks import (
    BOOTSTRAP_NAME,
    ENTRY_POINT_NAME,
    MAX_NESTING_DEPTH,
    Block,
    FunctionDef,
    NestingDepthError,
    ProgramStructure,
)

logger = logging.getLogger(__name__)


class SemanticError(ValueError):
    """Raised when a program structure is ambiguous and cannot be generated."""


def analyze(program: ProgramStructure, max_depth: int = MAX_NESTING_DEPTH) -> None:
    entries = program.entry_points()
    if len(entries) > 1:
        identifiers = ", ".join(f"'{function.identifier}'" for function in entries)
        raise SemanticError(
            f"Entry point '{ENTRY_POINT_NAME}' is defined by {len(entries)} functions ({identifiers}); "
            "exactly one function may use that name."
        )
    if not entries:
        if program.has_html_components:
            logger.warning("UI bootstrap requested but no '%s' function is defined.", ENTRY_POINT_NAME)
        else:
            logger.debug("Program has no '%s' function; no entry point will be emitted.", ENTRY_POINT_NAME)

    seen: dict[str, str] = {}
    for function in program.functions.values():
        if function.is_entry_point:
            continue
        name = function.emitted_name
        if program.has_html_components and name == BOOTSTRAP_NAME:
            raise SemanticError(
                f"Function '{function.identifier}' is named '{BOOTSTRAP_NAME}', which the UI bootstrap defines."
            )
        previous = seen.get(name)
        if previous is not None:
            logger.warning(
                "Functions '%s' and '%s' share the name '%s'; the later definition wins at runtime.",
                previous,
                function.identifier,
                name,
            )
        seen[name] = function.identifier
        if len(set(function.parameters)) != len(function.parameters):
            logger.warning("Function '%s' has duplicate parameter names.", name)

    for function in program.functions.values():
        _check_depth(function, max_depth)


def nesting_depth(blocks: tuple[Block, ...]) -> int:
    deepest = 0
    stack: list[tuple[Block, int]] = [(block, 1) for block in blocks]
    while stack:
        block, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in block.children())
    return deepest


def _check_depth(function: FunctionDef, max_depth: int) -> None:
    depth = nesting_depth(function.blocks)
    if depth > max_depth:
        raise NestingDepthError(
            f"Function '{function.name}' nests blocks {depth} deep, exceeding the maximum depth of {max_depth}."
        )
