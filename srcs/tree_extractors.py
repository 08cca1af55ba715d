"""
tree_extractors.py

Expression-tree extraction for languages with a parser available:
JavaScript through tree-sitter, Python through the standard ``ast`` module.

Both walk the tree looking for declarations initialised with a fresh
object/array/constructor call (Allocation) and for assignments of a null
value (Deallocation). A source the parser rejects raises, so the caller
can fall back to the line patterns.
"""

import ast
import math
from typing import Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from type_defs import ExtractionError, Event, AllocationEvent, DeallocationEvent


def _allocation(var: str, line: int, function: str, hints: list,
                enclosing: Optional[str], in_loop: bool, lines: list[str]) -> AllocationEvent:
    return {
        "kind": "allocation",
        "var": var,
        "line": line,
        "function": function,
        "raw_args": hints,
        "enclosing_function": enclosing,
        "in_loop": in_loop,
        "line_text": _line_text(lines, line),
    }


def _deallocation(var: str, line: int, function: str, lines: list[str]) -> DeallocationEvent:
    return {
        "kind": "deallocation",
        "var": var,
        "line": line,
        "function": function,
        "is_array": False,
        "line_text": _line_text(lines, line),
    }


def _line_text(lines: list[str], line: int) -> str:
    if 1 <= line <= len(lines):
        return lines[line - 1].strip()
    return ""


# =============================================================================
# JAVASCRIPT (tree-sitter)
# =============================================================================

JS_LOOP_TYPES = frozenset({
    "for_statement", "for_in_statement", "while_statement", "do_statement",
})

JS_FUNCTION_TYPES = frozenset({
    "function_declaration", "generator_function_declaration",
    "function_expression", "function", "generator_function",
    "arrow_function", "method_definition",
})

JS_NULL_TYPES = frozenset({"null", "undefined"})


def extract_javascript_events(code: str) -> list[Event]:
    """Extract events from JavaScript source with tree-sitter.

    Args:
        code: Comment-free JavaScript source.

    Returns:
        Events ordered by line.

    Raises:
        ExtractionError: If the source does not parse cleanly.
    """
    parser = Parser(Language(tree_sitter_javascript.language()))
    tree = parser.parse(code.encode("utf-8"))

    if tree.root_node.has_error:
        raise ExtractionError("JavaScript source contains syntax errors")

    events: list[Event] = []
    _walk_javascript(tree.root_node, code.split("\n"), events, None, False)
    events.sort(key=lambda event: event["line"])
    return events


def _walk_javascript(node: Node, lines: list[str], events: list[Event],
                     function: Optional[str], in_loop: bool) -> None:
    if node.type == "variable_declarator":
        allocation = _javascript_allocation(node, lines, function, in_loop)
        if allocation:
            events.append(allocation)

    elif node.type == "assignment_expression":
        deallocation = _javascript_null_assignment(node, lines)
        if deallocation:
            events.append(deallocation)

    if node.type in JS_FUNCTION_TYPES:
        # A function body runs when called, not once per enclosing iteration
        function = _javascript_function_name(node) or function
        in_loop = False
    elif node.type in JS_LOOP_TYPES:
        in_loop = True

    for child in node.children:
        _walk_javascript(child, lines, events, function, in_loop)


def _javascript_allocation(node: Node, lines: list[str], function: Optional[str],
                           in_loop: bool) -> Optional[AllocationEvent]:
    """``let v = new X(...)``, ``const v = [...]`` or ``var v = {...}``."""
    name = node.child_by_field_name("name")
    value = node.child_by_field_name("value")

    if name is None or value is None or name.type != "identifier":
        return None

    var = _text(name)
    line = node.start_point[0] + 1

    if value.type == "new_expression":
        constructor = value.child_by_field_name("constructor")
        arguments = value.child_by_field_name("arguments")
        callee = _text(constructor) if constructor is not None and constructor.type == "identifier" else "new"
        hints = [_evaluate(arg) for arg in _named(arguments)] if arguments is not None else []
        return _allocation(var, line, callee, hints, function, in_loop, lines)

    if value.type == "array":
        return _allocation(var, line, "Array", [len(_named(value))], function, in_loop, lines)

    if value.type == "object":
        return _allocation(var, line, "Object", [len(_named(value))], function, in_loop, lines)

    return None


def _javascript_null_assignment(node: Node, lines: list[str]) -> Optional[DeallocationEvent]:
    """``v = null`` or ``v = undefined``."""
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")

    if left is None or right is None or left.type != "identifier":
        return None

    is_null = right.type in JS_NULL_TYPES or (
        right.type == "identifier" and _text(right) == "undefined")
    if not is_null:
        return None

    return _deallocation(_text(left), node.start_point[0] + 1, "null", lines)


def _javascript_function_name(node: Node) -> Optional[str]:
    name = node.child_by_field_name("name")
    if name is not None:
        return _text(name)

    # const handler = () => {...}
    parent = node.parent
    if parent is not None and parent.type == "variable_declarator":
        declared = parent.child_by_field_name("name")
        if declared is not None and declared.type == "identifier":
            return _text(declared)

    return None


def _evaluate(node: Node):
    """Fold literals and simple arithmetic; anything else is None."""
    if node.type == "number":
        text = _text(node).replace("_", "")
        try:
            return int(text, 0)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None
        return value if math.isfinite(value) else None

    if node.type == "string":
        return _text(node)[1:-1]

    if node.type == "identifier":
        return _text(node)

    if node.type == "parenthesized_expression":
        inner = _named(node)
        return _evaluate(inner[0]) if inner else None

    if node.type == "binary_expression":
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        operator = node.child_by_field_name("operator")
        if left is None or right is None or operator is None:
            return None

        a, b = _evaluate(left), _evaluate(right)
        if _is_number(a) and _is_number(b):
            if operator.type == "*":
                return _finite(a * b)
            if operator.type == "+":
                return _finite(a + b)

    return None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _named(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


# =============================================================================
# PYTHON (ast)
# =============================================================================

PY_CONSTRUCTORS = frozenset({
    "list", "dict", "set", "tuple", "frozenset", "bytearray", "bytes",
    "array", "deque", "defaultdict", "OrderedDict", "Counter",
})


def extract_python_events(code: str) -> list[Event]:
    """Extract events from Python source with the ``ast`` module.

    Raises:
        SyntaxError: If the source does not parse.
    """
    visitor = _PythonEventVisitor(code.split("\n"))
    visitor.visit(ast.parse(code))
    visitor.events.sort(key=lambda event: event["line"])
    return visitor.events


class _PythonEventVisitor(ast.NodeVisitor):
    """Collects allocation and deallocation events while walking a module."""

    def __init__(self, lines: list[str]):
        self.lines = lines
        self.events: list[Event] = []
        self.function: Optional[str] = None
        self.in_loop = False

    def visit_FunctionDef(self, node):
        outer = (self.function, self.in_loop)
        self.function, self.in_loop = node.name, False
        self.generic_visit(node)
        self.function, self.in_loop = outer

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_For(self, node):
        outer = self.in_loop
        self.in_loop = True
        self.generic_visit(node)
        self.in_loop = outer

    visit_AsyncFor = visit_For
    visit_While = visit_For

    def visit_Assign(self, node):
        for target in node.targets:
            if isinstance(target, ast.Name):
                self._record(target.id, node.value, node.lineno)
        self.generic_visit(node)

    def visit_AnnAssign(self, node):
        if node.value is not None and isinstance(node.target, ast.Name):
            self._record(node.target.id, node.value, node.lineno)
        self.generic_visit(node)

    def visit_Delete(self, node):
        for target in node.targets:
            if isinstance(target, ast.Name):
                self.events.append(_deallocation(target.id, node.lineno, "del", self.lines))
        self.generic_visit(node)

    def _record(self, var: str, value: ast.expr, line: int) -> None:
        if isinstance(value, ast.Constant) and value.value is None:
            self.events.append(_deallocation(var, line, "None", self.lines))
            return

        allocation = _python_allocation(value)
        if allocation:
            function, hints = allocation
            self.events.append(_allocation(var, line, function, hints,
                                           self.function, self.in_loop, self.lines))


def _python_allocation(value: ast.expr) -> Optional[tuple[str, list]]:
    """Allocation kind and size hints of an assigned value, if it allocates."""
    if isinstance(value, (ast.List, ast.Tuple, ast.Set)):
        return type(value).__name__.lower(), [len(value.elts)]

    if isinstance(value, ast.Dict):
        return "dict", [len(value.keys)]

    if isinstance(value, (ast.ListComp, ast.SetComp, ast.DictComp)):
        return type(value).__name__.lower(), []

    # [0] * 100
    if isinstance(value, ast.BinOp) and isinstance(value.op, ast.Mult):
        for seq, count in ((value.left, value.right), (value.right, value.left)):
            if (isinstance(seq, (ast.List, ast.Tuple)) and isinstance(count, ast.Constant)
                    and _is_number(count.value)):
                return type(seq).__name__.lower(), [len(seq.elts) * count.value]

    if isinstance(value, ast.Call):
        if isinstance(value.func, ast.Name):
            name = value.func.id
        elif isinstance(value.func, ast.Attribute):
            name = value.func.attr
        else:
            return None

        if name in PY_CONSTRUCTORS or name[:1].isupper():
            hints = [arg.value if isinstance(arg, ast.Constant) else None for arg in value.args]
            return name, hints

    return None
