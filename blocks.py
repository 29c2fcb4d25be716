from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Union

from syntax import sanitize_identifier

ENTRY_POINT_NAME = "main"
BOOTSTRAP_NAME = "doGet"
MAX_NESTING_DEPTH = 100


class StructureError(ValueError):
    """Raised when an editor payload is not a well-formed program structure."""


class NestingDepthError(StructureError):
    """Raised when block nesting exceeds the configured depth bound."""


@dataclass(frozen=True)
class Block:
    tag: str
    params: Mapping[str, ParamValue] = field(default_factory=dict)
    output_name: str | None = None
    source_ref: str | None = None
    body: tuple[Block, ...] = ()
    else_body: tuple[Block, ...] = ()
    has_else: bool = False

    def children(self) -> tuple[Block, ...]:
        nested = tuple(value for value in self.params.values() if isinstance(value, Block))
        return nested + self.body + self.else_body


ParamValue = Union[str, Block]


@dataclass(frozen=True)
class FunctionDef:
    identifier: str
    name: str
    parameters: tuple[str, ...] = ()
    blocks: tuple[Block, ...] = ()

    @property
    def emitted_name(self) -> str:
        return sanitize_identifier(self.name, sanitize_identifier(self.identifier, "unnamedFunction"))

    @property
    def is_entry_point(self) -> bool:
        return self.emitted_name == ENTRY_POINT_NAME


@dataclass(frozen=True)
class HtmlComponent:
    identifier: str
    type: str
    name: str = ""
    properties: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class ProgramStructure:
    functions: Mapping[str, FunctionDef] = field(default_factory=dict)
    html_components: tuple[HtmlComponent, ...] = ()
    has_html_components: bool = False

    def entry_points(self) -> list[FunctionDef]:
        return [function for function in self.functions.values() if function.is_entry_point]


def load_program_file(path: Path, max_depth: int = MAX_NESTING_DEPTH) -> ProgramStructure:
    if not path.exists() or not path.is_file():
        raise StructureError(f"Program file not found: '{path}'.")
    return load_program_json(path.read_text(encoding="utf-8"), max_depth=max_depth)


def load_program_json(text: str, max_depth: int = MAX_NESTING_DEPTH) -> ProgramStructure:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StructureError(f"Invalid program JSON: {exc}.") from exc
    except RecursionError as exc:
        raise NestingDepthError("Program JSON is nested too deeply to decode.") from exc
    return load_program(data, max_depth=max_depth)


def load_program(data: Any, max_depth: int = MAX_NESTING_DEPTH) -> ProgramStructure:
    loader = _Loader(max_depth=max_depth)
    try:
        return loader.load(data)
    except RecursionError as exc:
        raise NestingDepthError(
            f"Program is nested too deeply to load before reaching the maximum depth of {max_depth}."
        ) from exc


class _Loader:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth

    def load(self, data: Any) -> ProgramStructure:
        if not isinstance(data, dict):
            raise StructureError("Program structure must be a JSON object.")
        raw_functions = data.get("functions") or {}
        if not isinstance(raw_functions, dict):
            raise StructureError("'functions' must be an object keyed by function id.")
        functions: dict[str, FunctionDef] = {}
        for function_id, raw_function in raw_functions.items():
            functions[str(function_id)] = self._load_function(str(function_id), raw_function)

        raw_components = data.get("htmlComponents") or []
        if not isinstance(raw_components, list):
            raise StructureError("'htmlComponents' must be a list.")
        components = tuple(
            self._load_component(raw, index) for index, raw in enumerate(raw_components, start=1)
        )
        return ProgramStructure(
            functions=MappingProxyType(functions),
            html_components=components,
            has_html_components=bool(data.get("hasHtmlComponents", False)),
        )

    def _load_function(self, function_id: str, raw: Any) -> FunctionDef:
        where = f"functions.{function_id}"
        if not isinstance(raw, dict):
            raise StructureError(f"{where} must be an object.")
        name = raw.get("name") or function_id
        parameters = raw.get("parameters") or []
        if not isinstance(parameters, list):
            raise StructureError(f"{where}.parameters must be a list of names.")
        blocks = self._load_sequence(raw.get("blocks"), f"{where}.blocks", depth=1)
        return FunctionDef(
            identifier=function_id,
            name=str(name),
            parameters=tuple(str(param) for param in parameters),
            blocks=blocks,
        )

    def _load_sequence(self, raw: Any, where: str, depth: int) -> tuple[Block, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise StructureError(f"{where} must be a list of blocks.")
        blocks: list[Block] = []
        for index, item in enumerate(raw):
            if item is None:
                continue
            blocks.append(self._load_block(item, f"{where}[{index}]", depth))
        return tuple(blocks)

    def _load_block(self, raw: Any, where: str, depth: int) -> Block:
        if depth > self.max_depth:
            raise NestingDepthError(f"Block nesting at {where} exceeds the maximum depth of {self.max_depth}.")
        if not isinstance(raw, dict):
            raise StructureError(f"{where} must be a block object.")
        raw_params = raw.get("params") or {}
        if not isinstance(raw_params, dict):
            raise StructureError(f"{where}.params must be an object.")
        params: dict[str, ParamValue] = {}
        for key, value in raw_params.items():
            converted = self._load_param(value, f"{where}.params.{key}", depth)
            if converted is not None:
                params[str(key)] = converted
        return Block(
            tag=str(raw.get("type") or ""),
            params=MappingProxyType(params),
            output_name=_optional_text(raw.get("variableName")),
            source_ref=_optional_text(raw.get("sourceRef")),
            body=self._load_sequence(raw.get("childBlocks"), f"{where}.childBlocks", depth + 1),
            else_body=self._load_sequence(raw.get("elseBlocks"), f"{where}.elseBlocks", depth + 1),
            has_else=bool(raw.get("hasElse", False)),
        )

    def _load_param(self, value: Any, where: str, depth: int) -> ParamValue | None:
        if value is None:
            return None
        if isinstance(value, dict):
            return self._load_block(value, where, depth + 1)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return _format_number(value)
        if isinstance(value, str):
            return value
        raise StructureError(f"{where} must be text, a number or a block.")

    def _load_component(self, raw: Any, index: int) -> HtmlComponent:
        where = f"htmlComponents[{index - 1}]"
        if not isinstance(raw, dict):
            raise StructureError(f"{where} must be an object.")
        component_type = raw.get("type")
        if not component_type:
            raise StructureError(f"{where} is missing its 'type'.")
        properties = raw.get("properties")
        if properties is not None and not isinstance(properties, dict):
            raise StructureError(f"{where}.properties must be an object.")
        return HtmlComponent(
            identifier=str(raw.get("id") or f"component{index}"),
            type=str(component_type),
            name=str(raw.get("name") or ""),
            properties=None if properties is None else MappingProxyType(dict(properties)),
        )


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
