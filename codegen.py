from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass
from enum import Enum
from string import Template
from typing import Any, Callable, Iterable, Mapping

from blocks import (
    BOOTSTRAP_NAME,
    ENTRY_POINT_NAME,
    MAX_NESTING_DEPTH,
    Block,
    FunctionDef,
    HtmlComponent,
    NestingDepthError,
    ProgramStructure,
)
from catalog import (
    CATALOG,
    CATEGORY_OPERATIONS,
    Category,
    DisplayOp,
    FlowOp,
    LogicOp,
    MathOp,
    OperationSpec,
    OperatorOp,
    SpreadsheetOp,
    UiOp,
    UtilityOp,
    VariableOp,
    find_component_template,
    find_operation,
)
from scope import Scope, fork, resolve
from semantic import analyze
from syntax import Blank, Clause, Comment, Compound, Line, Node, Verbatim, js_string, render_text, sanitize_identifier

logger = logging.getLogger(__name__)


class CodegenError(ValueError):
    """Raised when the render rules do not cover the operation catalog."""


HEADER_COMMENT = "Generated Apps Script Code"
UNSUPPORTED_PREFIX = "Unsupported block:"

_BOOTSTRAP_PAGE = Template(
    textwrap.dedent(
        """\
            <!DOCTYPE html>
            <html>
              <head>
                <base target="_top">
                <meta charset="utf-8">
                <meta name="viewport" content="width=device-width, initial-scale=1">
                <title>Generated App</title>
                <style>
                  body { font-family: Arial, sans-serif; margin: 20px; }
                </style>
              </head>
              <body>
                <div id="app-container"></div>
                <script>
                  // Initialization code
                  document.addEventListener('DOMContentLoaded', function() {
                    google.script.run
                      .withSuccessHandler(function(result) {
                        console.log('App initialized');
                      })
                      .$entry_point();
                  });
                </script>
              </body>
            </html>"""
    )
)


@dataclass(frozen=True)
class CodegenOptions:
    indent_width: int = 2
    max_depth: int = MAX_NESTING_DEPTH
    include_header: bool = True


Expression = Callable[[Mapping[str, str], str], str]
_Emitted = tuple[list[Node], Scope]

_OUTPUT_GUARD = "if (typeof outputElement !== 'undefined') {"


@dataclass(frozen=True)
class _Rule:
    expression: Expression | None = None
    statement: str | None = None
    atomic: bool = True


@dataclass(frozen=True)
class _Call:
    block: Block
    spec: OperationSpec
    rule: _Rule
    args: Mapping[str, str]
    depth: int


def _infix(symbol: str) -> Expression:
    return lambda a, r: f"{a['left']} {symbol} {a['right']}"


_VARIABLE_RULES = {
    VariableOp.DECLARE_VARIABLE: _Rule(expression=lambda a, r: a["value"], statement="_declare_named", atomic=False),
    VariableOp.GET_VARIABLE: _Rule(expression=lambda a, r: a["name"], statement="_value_reference"),
    VariableOp.SET_VARIABLE: _Rule(expression=lambda a, r: f"{a['name']} = {a['value']}", atomic=False),
    VariableOp.CREATE_ARRAY: _Rule(expression=lambda a, r: a["elements"], statement="_declare_named"),
}

_SPREADSHEET_RULES = {
    SpreadsheetOp.GET_ACTIVE_SPREADSHEET: _Rule(expression=lambda a, r: "SpreadsheetApp.getActiveSpreadsheet()"),
    SpreadsheetOp.GET_ACTIVE_SHEET: _Rule(expression=lambda a, r: f"{r}.getActiveSheet()"),
    SpreadsheetOp.GET_RANGE: _Rule(
        expression=lambda a, r: f"{r}.getRange({a['row']}, {a['column']}, {a['numRows']}, {a['numColumns']})"
    ),
    SpreadsheetOp.GET_VALUE: _Rule(expression=lambda a, r: f"{r}.getValue()"),
    SpreadsheetOp.SET_VALUE: _Rule(expression=lambda a, r: f"{r}.setValue({a['value']})"),
    SpreadsheetOp.GET_VALUES: _Rule(expression=lambda a, r: f"{r}.getValues()"),
    SpreadsheetOp.SET_VALUES: _Rule(expression=lambda a, r: f"{r}.setValues({a['values']})"),
}

_UI_RULES = {
    UiOp.ALERT: _Rule(expression=lambda a, r: f"SpreadsheetApp.getUi().alert({a['message']})"),
    UiOp.PROMPT: _Rule(expression=lambda a, r: f"SpreadsheetApp.getUi().prompt({a['message']}, {a['title']})"),
    UiOp.CONFIRM: _Rule(
        expression=lambda a, r: (
            f"SpreadsheetApp.getUi().alert({a['message']}, SpreadsheetApp.getUi().ButtonSet.YES_NO)"
            " === SpreadsheetApp.getUi().Button.YES"
        ),
        atomic=False,
    ),
    UiOp.CREATE_HTML_OUTPUT: _Rule(expression=lambda a, r: f"HtmlService.createHtmlOutput({a['html']})"),
    UiOp.SHOW_MODAL_DIALOG: _Rule(
        expression=lambda a, r: f"SpreadsheetApp.getUi().showModalDialog({a['html']}, {a['title']})"
    ),
}

_UTILITY_RULES = {
    UtilityOp.SLEEP: _Rule(expression=lambda a, r: f"Utilities.sleep({a['milliseconds']})"),
    UtilityOp.FORMAT_DATE: _Rule(
        expression=lambda a, r: f"Utilities.formatDate({a['date']}, {a['timeZone']}, {a['format']})"
    ),
    UtilityOp.PARSE_CSV: _Rule(expression=lambda a, r: f"Utilities.parseCsv({a['csv']})"),
    UtilityOp.BASE64_ENCODE: _Rule(expression=lambda a, r: f"Utilities.base64Encode({a['data']})"),
    UtilityOp.BASE64_DECODE: _Rule(expression=lambda a, r: f"Utilities.base64Decode({a['encoded']})"),
}

_DISPLAY_RULES = {
    DisplayOp.LOG_OUTPUT: _Rule(expression=lambda a, r: f"console.log({a['message']})"),
    DisplayOp.SHOW_RESULT: _Rule(
        expression=lambda a, r: (
            f"SpreadsheetApp.getUi().alert({a['title']}, {a['message']}, SpreadsheetApp.getUi().ButtonSet.OK)"
        )
    ),
    DisplayOp.CREATE_CHART: _Rule(
        expression=lambda a, r: (
            f"Charts.newLineChart().setTitle({a['title']}).setDataTable({a['data']})"
            f'.setOption("type", {a["type"]}).build()'
        )
    ),
    DisplayOp.DISPLAY_TABLE: _Rule(statement="_display_table"),
    DisplayOp.CREATE_DASHBOARD: _Rule(
        expression=lambda a, r: (
            f'HtmlService.createHtmlOutput("<h1>" + {a["title"]} + "</h1>" + [].concat({a["components"]}).join(""))'
        )
    ),
    DisplayOp.SIMPLE_OUTPUT: _Rule(statement="_simple_output"),
    DisplayOp.APPEND_TO_OUTPUT: _Rule(statement="_append_to_output"),
    DisplayOp.CLEAR_OUTPUT: _Rule(statement="_clear_output"),
}

_FLOW_RULES = {
    FlowOp.IF: _Rule(statement="_conditional"),
    FlowOp.FOR_EACH: _Rule(statement="_for_each"),
    FlowOp.FOR: _Rule(statement="_counted_range"),
    FlowOp.WHILE: _Rule(statement="_pre_test_loop"),
    FlowOp.DO_WHILE: _Rule(statement="_post_test_loop"),
    FlowOp.FUNCTION: _Rule(statement="_function_definition"),
}

_LOGIC_RULES = {
    LogicOp.AND: _Rule(expression=lambda a, r: f"{a['left']} && {a['right']}", atomic=False),
    LogicOp.OR: _Rule(expression=lambda a, r: f"{a['left']} || {a['right']}", atomic=False),
    LogicOp.NOT: _Rule(expression=lambda a, r: f"!({_bare(a['condition'])})"),
    LogicOp.EQUALS: _Rule(expression=lambda a, r: f"{a['left']} === {a['right']}", atomic=False),
    LogicOp.NOT_EQUALS: _Rule(expression=lambda a, r: f"{a['left']} !== {a['right']}", atomic=False),
    LogicOp.GREATER_THAN: _Rule(expression=lambda a, r: f"{a['left']} > {a['right']}", atomic=False),
    LogicOp.LESS_THAN: _Rule(expression=lambda a, r: f"{a['left']} < {a['right']}", atomic=False),
}

_MATH_RULES = {
    MathOp.CALCULATE: _Rule(expression=lambda a, r: a["expression"], atomic=False),
    MathOp.ADD: _Rule(expression=lambda a, r: f"Number({a['left']}) + Number({a['right']})", atomic=False),
    MathOp.SUBTRACT: _Rule(expression=_infix("-"), atomic=False),
    MathOp.MULTIPLY: _Rule(expression=_infix("*"), atomic=False),
    MathOp.DIVIDE: _Rule(expression=_infix("/"), atomic=False),
    MathOp.MOD: _Rule(expression=_infix("%"), atomic=False),
    MathOp.POWER: _Rule(expression=lambda a, r: f"Math.pow({a['base']}, {a['exponent']})"),
    MathOp.SQRT: _Rule(expression=lambda a, r: f"Math.sqrt({a['number']})"),
    MathOp.RANDOM: _Rule(
        expression=lambda a, r: f"{a['min']} + Math.random() * ({a['max']} - {a['min']})",
        atomic=False,
    ),
    MathOp.ROUND: _Rule(expression=lambda a, r: f"Math.round({a['number']})"),
    MathOp.FLOOR: _Rule(expression=lambda a, r: f"Math.floor({a['number']})"),
    MathOp.CEIL: _Rule(expression=lambda a, r: f"Math.ceil({a['number']})"),
}

_OPERATOR_RULES = {
    **{
        spec.operation: _Rule(expression=_infix(spec.symbol), atomic=False)
        for spec in CATALOG[Category.OPERATOR]
        if spec.symbol is not None
    },
    OperatorOp.INCREMENT: _Rule(expression=lambda a, r: f"{a['variable']}++", atomic=False),
    OperatorOp.DECREMENT: _Rule(expression=lambda a, r: f"{a['variable']}--", atomic=False),
    OperatorOp.ASSIGN: _Rule(expression=lambda a, r: f"{a['variable']} = {a['value']}", atomic=False),
}

_RULES: dict[Category, dict[Enum, _Rule]] = {
    Category.VARIABLES: _VARIABLE_RULES,
    Category.SPREADSHEET: _SPREADSHEET_RULES,
    Category.UI: _UI_RULES,
    Category.UTILITIES: _UTILITY_RULES,
    Category.DISPLAY: _DISPLAY_RULES,
    Category.FLOW: _FLOW_RULES,
    Category.LOGIC: _LOGIC_RULES,
    Category.MATH: _MATH_RULES,
    Category.OPERATOR: _OPERATOR_RULES,
}


def generate_code(program: ProgramStructure, options: CodegenOptions | None = None) -> str:
    options = options or CodegenOptions()
    analyze(program, max_depth=options.max_depth)
    builder = _ProgramBuilder(program=program, options=options)
    try:
        return builder.build()
    except RecursionError as exc:
        raise _stack_exhausted(options.max_depth) from exc


def render_blocks(
    blocks: Iterable[Block],
    scope: Scope | None = None,
    indent_width: int = 2,
    max_depth: int = MAX_NESTING_DEPTH,
) -> tuple[str, Scope]:
    renderer = _BlockRenderer(max_depth=max_depth)
    try:
        nodes, scope = renderer.render(tuple(blocks), scope or Scope())
        return render_text(nodes, indent_width=indent_width), scope
    except RecursionError as exc:
        raise _stack_exhausted(max_depth) from exc


def render_expression(block: Block, max_depth: int = MAX_NESTING_DEPTH) -> str:
    try:
        return _BlockRenderer(max_depth=max_depth).expression(block, depth=1)
    except RecursionError as exc:
        raise _stack_exhausted(max_depth) from exc


def _stack_exhausted(max_depth: int) -> NestingDepthError:
    return NestingDepthError(
        f"Block nesting is too deep to render before reaching the maximum depth of {max_depth}; "
        "lower the depth bound or flatten the program."
    )


class _BlockRenderer:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth

    def render(self, blocks: tuple[Block, ...], scope: Scope, depth: int = 1) -> tuple[list[Node], Scope]:
        nodes: list[Node] = []
        for block in blocks:
            emitted, scope = self._render_block(block, scope, depth)
            nodes.extend(emitted)
        return nodes, scope

    def expression(self, block: Block, depth: int) -> str:
        self._check_depth(block, depth)
        spec = find_operation(block.tag)
        if spec is None:
            logger.warning("Unsupported value block '%s'.", block.tag)
            return f"undefined /* {UNSUPPORTED_PREFIX} {_comment_safe(block.tag)} */"
        rule = _RULES[spec.category][spec.operation]
        if rule.expression is None:
            return f"undefined /* {spec.tag} */"
        args = self._arguments(block, spec, depth)
        return rule.expression(args, self._receiver(block, spec))

    def _render_block(self, block: Block, scope: Scope, depth: int) -> tuple[list[Node], Scope]:
        if not block.tag:
            return [], scope
        self._check_depth(block, depth)
        spec = find_operation(block.tag)
        if spec is None:
            logger.warning("Unsupported block '%s'; emitting an annotation instead.", block.tag)
            return [Comment(f"{UNSUPPORTED_PREFIX} {block.tag}")], scope
        if spec.category.value_only:
            return [], scope
        rule = _RULES[spec.category][spec.operation]
        args = self._arguments(block, spec, depth)
        if rule.statement is not None:
            handler = getattr(self, rule.statement)
            return handler(_Call(block=block, spec=spec, rule=rule, args=args, depth=depth), scope)
        text = rule.expression(args, self._receiver(block, spec))
        if spec.returns_value:
            statement, scope = resolve(scope, self._output_name(block, spec), text)
            return [statement], scope
        return [Line(f"{text};")], scope

    def _arguments(self, block: Block, spec: OperationSpec, depth: int) -> dict[str, str]:
        args: dict[str, str] = {}
        for param in spec.params:
            value = block.params.get(param)
            if isinstance(value, Block):
                args[param] = self._nested_expression(value, depth + 1)
            elif value:
                args[param] = value
            else:
                args[param] = spec.default_for(param)
        return args

    def _nested_expression(self, block: Block, depth: int) -> str:
        text = self.expression(block, depth)
        spec = find_operation(block.tag)
        if spec is not None and not _RULES[spec.category][spec.operation].atomic:
            return _Parenthesized(text)
        return text

    def _receiver(self, block: Block, spec: OperationSpec) -> str:
        return block.source_ref or spec.receiver or ""

    def _output_name(self, block: Block, spec: OperationSpec) -> str:
        fallback = spec.output_name or "result"
        return sanitize_identifier(block.output_name or fallback, fallback)

    def _check_depth(self, block: Block, depth: int) -> None:
        if depth > self.max_depth:
            raise NestingDepthError(
                f"Block '{block.tag}' is nested {depth} deep, exceeding the maximum depth of {self.max_depth}."
            )

    def _declare_named(self, call: _Call, scope: Scope) -> _Emitted:
        name = sanitize_identifier(call.args["name"], call.spec.default_for("name"))
        statement, scope = resolve(scope, name, _bare(call.rule.expression(call.args, "")))
        return [statement], scope

    def _value_reference(self, call: _Call, scope: Scope) -> _Emitted:
        if not call.block.output_name:
            return [], scope
        target = self._output_name(call.block, call.spec)
        statement, scope = resolve(scope, target, _bare(call.rule.expression(call.args, "")))
        return [statement], scope

    def _display_table(self, call: _Call, scope: Scope) -> _Emitted:
        table = self._output_name(call.block, call.spec)
        opening, scope = resolve(scope, table, js_string('<table border="1" style="border-collapse: collapse;">'))
        header_loop = Compound(
            (
                Clause(
                    f"for (const header of {call.args['headers']}) {{",
                    (Line(f"{table} += '<th>' + header + '</th>';"),),
                ),
            )
        )
        cell_loop = Compound(
            (Clause("for (const cell of row) {", (Line(f"{table} += '<td>' + cell + '</td>';"),)),)
        )
        row_loop = Compound(
            (
                Clause(
                    f"for (const row of {call.args['data']}) {{",
                    (Line(f"{table} += '<tr>';"), cell_loop, Line(f"{table} += '</tr>';")),
                ),
            )
        )
        nodes: list[Node] = [
            Comment("Create HTML table from data"),
            opening,
            Comment("Add headers"),
            Line(f"{table} += '<tr>';"),
            header_loop,
            Line(f"{table} += '</tr>';"),
            Comment("Add data rows"),
            row_loop,
            Line(f"{table} += '</table>';"),
        ]
        return nodes, scope

    def _simple_output(self, call: _Call, scope: Scope) -> _Emitted:
        value = call.args["value"]
        nodes = [Line(f'console.log("Output: " + ({value}));'), *_ui_output(f'"<div>Output: " + ({value}) + "</div>"')]
        return nodes, scope

    def _append_to_output(self, call: _Call, scope: Scope) -> _Emitted:
        value = call.args["value"]
        return [Line(f"console.log({value});"), *_ui_output(f'"<div>" + ({value}) + "</div>"')], scope

    def _clear_output(self, call: _Call, scope: Scope) -> _Emitted:
        guard = Compound((Clause(_OUTPUT_GUARD, (Line('outputElement.innerHTML = "";'),)),))
        return [Comment("Clear the output display"), guard], scope

    def _conditional(self, call: _Call, scope: Scope) -> _Emitted:
        then_nodes, _ = self.render(call.block.body, fork(scope), call.depth + 1)
        clauses = [Clause(f"if ({_bare(call.args['condition'])}) {{", tuple(then_nodes))]
        if call.block.has_else:
            else_nodes, _ = self.render(call.block.else_body, fork(scope), call.depth + 1)
            clauses.append(Clause("} else {", tuple(else_nodes)))
        return [Compound(tuple(clauses))], scope

    def _for_each(self, call: _Call, scope: Scope) -> _Emitted:
        item = sanitize_identifier(call.args["itemName"], call.spec.default_for("itemName"))
        body, _ = self.render(call.block.body, fork(scope, item), call.depth + 1)
        head = f"{call.args['array']}.forEach(function({item}) {{"
        return [Compound((Clause(head, tuple(body)),), tail="});")], scope

    def _counted_range(self, call: _Call, scope: Scope) -> _Emitted:
        counter = sanitize_identifier(call.args["counterName"], call.spec.default_for("counterName"))
        body, _ = self.render(call.block.body, fork(scope, counter), call.depth + 1)
        head = (
            f"for (let {counter} = {call.args['start']}; {counter} < {call.args['end']}; "
            f"{counter} += {call.args['step']}) {{"
        )
        return [Compound((Clause(head, tuple(body)),))], scope

    def _pre_test_loop(self, call: _Call, scope: Scope) -> _Emitted:
        body, _ = self.render(call.block.body, fork(scope), call.depth + 1)
        return [Compound((Clause(f"while ({_bare(call.args['condition'])}) {{", tuple(body)),))], scope

    def _post_test_loop(self, call: _Call, scope: Scope) -> _Emitted:
        body, _ = self.render(call.block.body, fork(scope), call.depth + 1)
        tail = f"}} while ({_bare(call.args['condition'])});"
        return [Compound((Clause("do {", tuple(body)),), tail=tail)], scope

    def _function_definition(self, call: _Call, scope: Scope) -> _Emitted:
        logger.debug("Ignoring inline function definition block '%s'.", call.args["name"])
        return [], scope


def _ui_output(markup: str) -> list[Node]:
    return [
        Comment("For UI display"),
        Compound((Clause(_OUTPUT_GUARD, (Line(f"outputElement.innerHTML += {markup};"),)),)),
    ]


class _Parenthesized(str):
    """Nested value text wrapped in parentheses; keeps the bare form for contexts that add their own."""

    inner: str

    def __new__(cls, inner: str) -> _Parenthesized:
        wrapped = super().__new__(cls, f"({inner})")
        wrapped.inner = inner
        return wrapped


def _bare(text: str) -> str:
    if isinstance(text, _Parenthesized):
        return text.inner
    return text


def _comment_safe(text: str) -> str:
    return text.replace("*/", "* /")


def _style_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_style_text(item) for item in value)
    return str(value)


class _ProgramBuilder:
    def __init__(self, program: ProgramStructure, options: CodegenOptions) -> None:
        self.program = program
        self.options = options
        self.renderer = _BlockRenderer(max_depth=options.max_depth)

    def build(self) -> str:
        nodes: list[Node] = []
        if self.options.include_header:
            nodes.extend([Comment(HEADER_COMMENT), Blank()])
        if self.program.html_components:
            nodes.extend(self._component_preamble())

        entry: FunctionDef | None = None
        for function in self.program.functions.values():
            if function.is_entry_point:
                entry = function
                continue
            nodes.extend(self._function(function, function.emitted_name))
        if entry is not None:
            nodes.extend(self._function(entry, ENTRY_POINT_NAME))

        if self.program.has_html_components:
            nodes.extend(self._bootstrap())
        return render_text(nodes, indent_width=self.options.indent_width)

    def _function(self, function: FunctionDef, name: str) -> list[Node]:
        params = [sanitize_identifier(param, f"arg{index}") for index, param in enumerate(function.parameters)]
        logger.debug("Rendering function '%s' (%d block(s)).", name, len(function.blocks))
        body, _ = self.renderer.render(function.blocks, Scope.seeded(params))
        head = f"function {name}({', '.join(params)}) {{"
        return [Compound((Clause(head, tuple(body)),)), Blank()]

    def _component_preamble(self) -> list[Node]:
        nodes: list[Node] = [Comment("HTML Components")]
        for index, component in enumerate(self.program.html_components, start=1):
            nodes.extend(self._component(component, index))
            nodes.append(Blank())
        return nodes

    def _component(self, component: HtmlComponent, index: int) -> list[Node]:
        identifier = sanitize_identifier(component.identifier, f"component{index}")
        properties = component.properties
        if properties is None:
            template = find_component_template(component.type)
            properties = template.properties if template is not None else {}
        nodes: list[Node] = [Line(f"const {identifier} = document.createElement({js_string(component.type)});")]
        for prop, value in properties.items():
            prop_name = sanitize_identifier(prop, "property")
            nodes.append(Line(f"{identifier}.style.{prop_name} = {js_string(_style_text(value))};"))
        return nodes

    def _bootstrap(self) -> list[Node]:
        page = _BOOTSTRAP_PAGE.substitute(entry_point=ENTRY_POINT_NAME)
        body = (
            Line("const htmlOutput = HtmlService.createHtmlOutput();"),
            Blank(),
            Comment("Add HTML content"),
            Line("htmlOutput.setContent(`"),
            Verbatim(page),
            Line("`);"),
            Blank(),
            Line("return htmlOutput.setTitle('Generated App');"),
        )
        return [
            Line("/**"),
            Line(" * Creates UI elements and shows the web app"),
            Line(" */"),
            Compound((Clause(f"function {BOOTSTRAP_NAME}() {{", body),)),
        ]


def _check_rules() -> None:
    for category, operations in CATEGORY_OPERATIONS.items():
        rules = _RULES.get(category, {})
        missing = [operation.value for operation in operations if operation not in rules]
        if missing:
            raise CodegenError(f"No render rule for {category.value} operation(s): {', '.join(missing)}.")
        for operation in operations:
            rule = rules[operation]
            if rule.expression is None and rule.statement is None:
                raise CodegenError(f"Render rule for '{category.value}.{operation.value}' is empty.")
            if rule.statement is not None and not callable(getattr(_BlockRenderer, rule.statement, None)):
                raise CodegenError(
                    f"Render rule for '{category.value}.{operation.value}' names unknown handler '{rule.statement}'."
                )


_check_rules()
