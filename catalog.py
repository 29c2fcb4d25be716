from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Category(Enum):
    VARIABLES = "variables"
    SPREADSHEET = "spreadsheet"
    UI = "ui"
    UTILITIES = "utilities"
    DISPLAY = "display"
    FLOW = "flow"
    LOGIC = "logic"
    MATH = "math"
    OPERATOR = "operator"

    @property
    def title(self) -> str:
        return _CATEGORY_TITLES[self]

    @property
    def value_only(self) -> bool:
        return self is Category.LOGIC


_CATEGORY_TITLES = {
    Category.VARIABLES: "Variables",
    Category.SPREADSHEET: "Spreadsheet",
    Category.UI: "User Interface",
    Category.UTILITIES: "Utilities",
    Category.DISPLAY: "Display",
    Category.FLOW: "Control Flow",
    Category.LOGIC: "Logic",
    Category.MATH: "Math",
    Category.OPERATOR: "Operators",
}


class VariableOp(Enum):
    DECLARE_VARIABLE = "declareVariable"
    GET_VARIABLE = "getVariable"
    SET_VARIABLE = "setVariable"
    CREATE_ARRAY = "createArray"


class SpreadsheetOp(Enum):
    GET_ACTIVE_SPREADSHEET = "getActiveSpreadsheet"
    GET_ACTIVE_SHEET = "getActiveSheet"
    GET_RANGE = "getRange"
    GET_VALUE = "getValue"
    SET_VALUE = "setValue"
    GET_VALUES = "getValues"
    SET_VALUES = "setValues"


class UiOp(Enum):
    ALERT = "alert"
    PROMPT = "prompt"
    CONFIRM = "confirm"
    CREATE_HTML_OUTPUT = "createHtmlOutput"
    SHOW_MODAL_DIALOG = "showModalDialog"


class UtilityOp(Enum):
    SLEEP = "sleep"
    FORMAT_DATE = "formatDate"
    PARSE_CSV = "parseCsv"
    BASE64_ENCODE = "base64Encode"
    BASE64_DECODE = "base64Decode"


class DisplayOp(Enum):
    LOG_OUTPUT = "logOutput"
    SHOW_RESULT = "showResult"
    CREATE_CHART = "createChart"
    DISPLAY_TABLE = "displayTable"
    CREATE_DASHBOARD = "createDashboard"
    SIMPLE_OUTPUT = "simpleOutput"
    APPEND_TO_OUTPUT = "appendToOutput"
    CLEAR_OUTPUT = "clearOutput"


class FlowOp(Enum):
    IF = "if"
    FOR_EACH = "forEach"
    FOR = "for"
    WHILE = "while"
    DO_WHILE = "doWhile"
    FUNCTION = "function"


class LogicOp(Enum):
    AND = "and"
    OR = "or"
    NOT = "not"
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"


class MathOp(Enum):
    CALCULATE = "calculate"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MOD = "mod"
    POWER = "power"
    SQRT = "sqrt"
    RANDOM = "random"
    ROUND = "round"
    FLOOR = "floor"
    CEIL = "ceil"


class OperatorOp(Enum):
    PLUS = "plus"
    MINUS = "minus"
    TIMES = "times"
    DIVIDED_BY = "dividedBy"
    MODULO = "modulo"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    ASSIGN = "assign"


CATEGORY_OPERATIONS: Mapping[Category, type[Enum]] = MappingProxyType(
    {
        Category.VARIABLES: VariableOp,
        Category.SPREADSHEET: SpreadsheetOp,
        Category.UI: UiOp,
        Category.UTILITIES: UtilityOp,
        Category.DISPLAY: DisplayOp,
        Category.FLOW: FlowOp,
        Category.LOGIC: LogicOp,
        Category.MATH: MathOp,
        Category.OPERATOR: OperatorOp,
    }
)

PUZZLE_OUT = "puzzle-out"
PUZZLE_IN = "puzzle-in"
NO_CONNECTOR = "none"


@dataclass(frozen=True)
class OperationSpec:
    category: Category
    operation: Enum
    description: str
    params: tuple[str, ...] = ()
    defaults: Mapping[str, str] = field(default_factory=dict)
    returns_value: bool = False
    is_container: bool = False
    has_else: bool = False
    is_function_def: bool = False
    output_shape: str = PUZZLE_OUT
    input_shape: str = PUZZLE_IN
    symbol: str | None = None
    inline_code: bool = False
    output_name: str | None = None
    receiver: str | None = None

    @property
    def name(self) -> str:
        return self.operation.value

    @property
    def tag(self) -> str:
        return f"{self.category.value}.{self.name}"

    def default_for(self, param: str) -> str:
        return self.defaults[param]

    def to_editor_dict(self) -> dict:
        entry: dict = {
            "name": self.name,
            "params": list(self.params),
            "description": self.description,
        }
        if self.returns_value:
            entry["returnValue"] = True
        elif not self.is_container:
            entry["returnValue"] = False
        if self.is_container:
            entry["isContainer"] = True
        if self.has_else:
            entry["hasElse"] = True
        if self.is_function_def:
            entry["isFunctionDef"] = True
        entry["outputShape"] = self.output_shape
        entry["inputShape"] = self.input_shape
        if self.symbol is not None:
            entry["symbol"] = self.symbol
        if self.inline_code:
            entry["inlineCode"] = True
        return entry


def _op(
    operation: Enum,
    description: str,
    defaults: dict[str, str] | None = None,
    **flags,
) -> OperationSpec:
    category = next(cat for cat, ops in CATEGORY_OPERATIONS.items() if isinstance(operation, ops))
    defaults = dict(defaults or {})
    return OperationSpec(
        category=category,
        operation=operation,
        description=description,
        params=tuple(defaults),
        defaults=MappingProxyType(defaults),
        **flags,
    )


def _value(operation: Enum, description: str, defaults: dict[str, str] | None = None, **flags) -> OperationSpec:
    flags.setdefault("input_shape", NO_CONNECTOR)
    return _op(operation, description, defaults, returns_value=True, **flags)


def _container(operation: Enum, description: str, defaults: dict[str, str] | None = None, **flags) -> OperationSpec:
    return _op(operation, description, defaults, is_container=True, **flags)


_EMPTY = '""'

_SPECS: tuple[OperationSpec, ...] = (
    _value(
        VariableOp.DECLARE_VARIABLE,
        "Declare a variable with a value",
        {"name": "myVar", "value": _EMPTY},
    ),
    _value(VariableOp.GET_VARIABLE, "Get a variable's value", {"name": "myVar"}),
    _op(VariableOp.SET_VARIABLE, "Set a variable's value", {"name": "myVar", "value": _EMPTY}),
    _value(
        VariableOp.CREATE_ARRAY,
        "Create an array with elements",
        {"name": "myArray", "elements": "[]"},
    ),
    _value(
        SpreadsheetOp.GET_ACTIVE_SPREADSHEET,
        "Gets the active spreadsheet",
        output_name="ss",
    ),
    _value(
        SpreadsheetOp.GET_ACTIVE_SHEET,
        "Gets the active sheet in the active spreadsheet",
        input_shape=PUZZLE_IN,
        output_name="sheet",
        receiver="SpreadsheetApp",
    ),
    _value(
        SpreadsheetOp.GET_RANGE,
        "Gets a range at the specified coordinates",
        {"row": "1", "column": "1", "numRows": "1", "numColumns": "1"},
        input_shape=PUZZLE_IN,
        output_name="range",
        receiver="sheet",
    ),
    _value(
        SpreadsheetOp.GET_VALUE,
        "Gets the value of a range or cell",
        input_shape=PUZZLE_IN,
        output_name="value",
        receiver="range",
    ),
    _op(SpreadsheetOp.SET_VALUE, "Sets the value of a range or cell", {"value": _EMPTY}, receiver="range"),
    _value(
        SpreadsheetOp.GET_VALUES,
        "Gets the values of a range as a 2D array",
        input_shape=PUZZLE_IN,
        output_name="values",
        receiver="range",
    ),
    _op(
        SpreadsheetOp.SET_VALUES,
        "Sets the values of a range from a 2D array",
        {"values": "[[]]"},
        receiver="range",
    ),
    _op(UiOp.ALERT, "Shows an alert dialog", {"message": _EMPTY}),
    _value(
        UiOp.PROMPT,
        "Shows a prompt dialog",
        {"message": _EMPTY, "title": _EMPTY},
        input_shape=PUZZLE_IN,
        output_name="result",
    ),
    _value(
        UiOp.CONFIRM,
        "Shows a confirmation dialog",
        {"message": _EMPTY},
        input_shape=PUZZLE_IN,
        output_name="result",
    ),
    _value(
        UiOp.CREATE_HTML_OUTPUT,
        "Creates HTML output",
        {"html": _EMPTY},
        input_shape=PUZZLE_IN,
        output_name="htmlOutput",
    ),
    _op(
        UiOp.SHOW_MODAL_DIALOG,
        "Shows modal dialog with HTML content",
        {"html": "htmlOutput", "title": _EMPTY},
    ),
    _op(UtilityOp.SLEEP, "Suspends execution for the specified duration", {"milliseconds": "1000"}),
    _value(
        UtilityOp.FORMAT_DATE,
        "Formats a date according to the pattern",
        {"date": "new Date()", "timeZone": "Session.getScriptTimeZone()", "format": '"yyyy-MM-dd"'},
        input_shape=PUZZLE_IN,
        output_name="formattedDate",
    ),
    _value(
        UtilityOp.PARSE_CSV,
        "Parses CSV data into a 2D array",
        {"csv": _EMPTY},
        input_shape=PUZZLE_IN,
        output_name="parsedCsv",
    ),
    _value(
        UtilityOp.BASE64_ENCODE,
        "Encodes data as Base64",
        {"data": _EMPTY},
        input_shape=PUZZLE_IN,
        output_name="encodedData",
    ),
    _value(
        UtilityOp.BASE64_DECODE,
        "Decodes Base64 data",
        {"encoded": _EMPTY},
        input_shape=PUZZLE_IN,
        output_name="decodedData",
    ),
    _op(DisplayOp.LOG_OUTPUT, "Logs a message to the console", {"message": _EMPTY}),
    _op(
        DisplayOp.SHOW_RESULT,
        "Shows a result dialog with a title and message",
        {"title": '"Result"', "message": _EMPTY},
    ),
    _value(
        DisplayOp.CREATE_CHART,
        "Creates a chart with the given data",
        {"title": _EMPTY, "data": "[]", "type": '"LINE"'},
        input_shape=PUZZLE_IN,
        output_name="chart",
    ),
    _value(
        DisplayOp.DISPLAY_TABLE,
        "Displays data as a table",
        {"data": "[]", "headers": "[]"},
        input_shape=PUZZLE_IN,
        output_name="table",
    ),
    _value(
        DisplayOp.CREATE_DASHBOARD,
        "Creates a dashboard with components",
        {"title": '"Dashboard"', "components": "[]"},
        input_shape=PUZZLE_IN,
        output_name="dashboard",
    ),
    _op(DisplayOp.SIMPLE_OUTPUT, "Simple output display of a value", {"value": _EMPTY}),
    _op(DisplayOp.APPEND_TO_OUTPUT, "Append value to output log", {"value": _EMPTY}),
    _op(DisplayOp.CLEAR_OUTPUT, "Clear the output display"),
    _container(FlowOp.IF, "Conditional execution", {"condition": "true"}, has_else=True),
    _container(
        FlowOp.FOR_EACH,
        "Loop through elements in an array",
        {"array": "[]", "itemName": "item"},
    ),
    _container(
        FlowOp.FOR,
        "Loop from start to end",
        {"start": "0", "end": "10", "step": "1", "counterName": "i"},
    ),
    _container(FlowOp.WHILE, "Loop while a condition is true", {"condition": "true"}),
    _container(
        FlowOp.DO_WHILE,
        "Loop at least once, then while condition is true",
        {"condition": "true"},
    ),
    _container(
        FlowOp.FUNCTION,
        "Define a function",
        {"name": "myFunction", "params": ""},
        is_function_def=True,
        output_shape=NO_CONNECTOR,
        input_shape=NO_CONNECTOR,
    ),
    _value(LogicOp.AND, "Logical AND of two conditions", {"left": "true", "right": "true"}),
    _value(LogicOp.OR, "Logical OR of two conditions", {"left": "true", "right": "true"}),
    _value(LogicOp.NOT, "Logical NOT of a condition", {"condition": "true"}),
    _value(LogicOp.EQUALS, "Equality comparison", {"left": "0", "right": "0"}),
    _value(LogicOp.NOT_EQUALS, "Inequality comparison", {"left": "0", "right": "0"}),
    _value(LogicOp.GREATER_THAN, "Greater than comparison", {"left": "0", "right": "0"}),
    _value(LogicOp.LESS_THAN, "Less than comparison", {"left": "0", "right": "0"}),
    _value(MathOp.CALCULATE, "Calculate a mathematical expression", {"expression": "0"}, output_name="result"),
    _value(MathOp.ADD, "Addition", {"left": "0", "right": "0"}, output_name="sum"),
    _value(MathOp.SUBTRACT, "Subtraction", {"left": "0", "right": "0"}, output_name="difference"),
    _value(MathOp.MULTIPLY, "Multiplication", {"left": "0", "right": "0"}, output_name="product"),
    _value(MathOp.DIVIDE, "Division", {"left": "0", "right": "1"}, output_name="quotient"),
    _value(MathOp.MOD, "Modulus (remainder)", {"left": "0", "right": "1"}, output_name="remainder"),
    _value(MathOp.POWER, "Raise a number to a power", {"base": "0", "exponent": "1"}, output_name="power"),
    _value(MathOp.SQRT, "Square root of a number", {"number": "0"}, output_name="squareRoot"),
    _value(MathOp.RANDOM, "Random number between min and max", {"min": "0", "max": "1"}, output_name="randomNumber"),
    _value(MathOp.ROUND, "Round to nearest integer", {"number": "0"}, output_name="rounded"),
    _value(MathOp.FLOOR, "Round down to nearest integer", {"number": "0"}, output_name="floored"),
    _value(MathOp.CEIL, "Round up to nearest integer", {"number": "0"}, output_name="ceiling"),
    _value(OperatorOp.PLUS, "Addition (+)", {"left": "0", "right": "0"}, symbol="+", output_name="result"),
    _value(OperatorOp.MINUS, "Subtraction (-)", {"left": "0", "right": "0"}, symbol="-", output_name="result"),
    _value(OperatorOp.TIMES, "Multiplication (*)", {"left": "0", "right": "0"}, symbol="*", output_name="result"),
    _value(OperatorOp.DIVIDED_BY, "Division (/)", {"left": "0", "right": "1"}, symbol="/", output_name="result"),
    _value(OperatorOp.MODULO, "Modulus (%)", {"left": "0", "right": "1"}, symbol="%", output_name="result"),
    _op(OperatorOp.INCREMENT, "Increment (++)", {"variable": "x"}, inline_code=True),
    _op(OperatorOp.DECREMENT, "Decrement (--)", {"variable": "x"}, inline_code=True),
    _op(OperatorOp.ASSIGN, "Assignment (=)", {"variable": "x", "value": "0"}, inline_code=True),
)


CATALOG: Mapping[Category, tuple[OperationSpec, ...]] = MappingProxyType(
    {
        category: tuple(spec for spec in _SPECS if spec.category is category)
        for category in Category
    }
)

_BY_TAG: Mapping[str, OperationSpec] = MappingProxyType({spec.tag: spec for spec in _SPECS})


def get_catalog() -> Mapping[Category, tuple[OperationSpec, ...]]:
    return CATALOG


def split_tag(tag: str) -> tuple[str, str]:
    category, _, operation = tag.partition(".")
    return category, operation


def find_operation(tag: str) -> OperationSpec | None:
    return _BY_TAG.get(tag)


def catalog_to_editor_dict() -> dict:
    return {
        category.value: {
            "category": category.title,
            "functions": [spec.to_editor_dict() for spec in specs],
        }
        for category, specs in CATALOG.items()
    }


@dataclass(frozen=True)
class ComponentTemplate:
    type: str
    name: str
    properties: Mapping[str, object]

    def to_editor_dict(self) -> dict:
        properties = {key: list(value) if isinstance(value, tuple) else value for key, value in self.properties.items()}
        return {"type": self.type, "name": self.name, "properties": properties}


def _template(type_: str, name: str, **properties: object) -> ComponentTemplate:
    return ComponentTemplate(type=type_, name=name, properties=MappingProxyType(properties))


HTML_COMPONENTS: tuple[ComponentTemplate, ...] = (
    _template(
        "div",
        "Container",
        width="100px",
        height="100px",
        backgroundColor="#f0f0f0",
        color="#000000",
        padding="10px",
    ),
    _template(
        "button",
        "Button",
        text="Click Me",
        backgroundColor="#4CAF50",
        color="white",
        padding="10px",
        borderRadius="4px",
    ),
    _template("input", "Text Input", placeholder="Enter text...", width="150px", padding="8px"),
    _template(
        "select",
        "Dropdown",
        options=("Option 1", "Option 2", "Option 3"),
        width="150px",
        padding="8px",
    ),
    _template("table", "Table", rows=3, columns=3, width="200px", borderCollapse="collapse"),
    _template("label", "Label", text="Text Label", fontWeight="bold"),
)


def get_html_components() -> tuple[ComponentTemplate, ...]:
    return HTML_COMPONENTS


def find_component_template(type_: str) -> ComponentTemplate | None:
    return next((template for template in HTML_COMPONENTS if template.type == type_), None)
