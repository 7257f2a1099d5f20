# --- Hook arguments -> parameter descriptors ---------------------------------
from typing import Optional

from hook_finder.src.hook_finder.binder import TypeBinder
from hook_finder.src.hook_finder.config import DEFAULT_PARAMETER_NAME, UNKNOWN_TYPE
from hook_finder.src.hook_finder.models.hook_models import ParameterDescriptor
from hook_finder.src.hook_finder.tree_sitter_helpers import expression_children, first_child_of_type, node_text

ARRAY_CREATIONS = ("array_creation_expression", "implicit_array_creation_expression")

_OPENERS = {")": "(", "]": "[", ">": "<"}


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def _upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def _is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _matching_open(text: str, close_at: int) -> int:
    """Index of the bracket opening the one at `close_at`, or -1."""
    closer = text[close_at]
    opener = _OPENERS[closer]
    depth = 0
    for i in range(close_at, -1, -1):
        if text[i] == closer:
            depth += 1
        elif text[i] == opener:
            depth -= 1
            if depth == 0:
                return i
    return -1


def _method_name_span(text: str, open_at: int) -> tuple[int, int]:
    """
    (start, end) of the method name in front of `(` at `open_at`, skipping
    generic arguments (`Get<T>(`). start == end when there is no name.
    """
    end = open_at
    if end > 0 and text[end - 1] == ">":
        generic_open = _matching_open(text, end - 1)
        if generic_open < 0:
            return open_at, open_at
        end = generic_open
    start = end
    while start > 0 and _is_identifier_char(text[start - 1]):
        start -= 1
    return start, end


def _receiver_start(text: str, name_start: int) -> int:
    """Start of the `a.b(x).c[0].` chain in front of a method name."""
    start = name_start
    while start > 0 and text[start - 1] == ".":
        segment_end = start - 1
        if segment_end > 0 and text[segment_end - 1] == "?":
            segment_end -= 1
        i = segment_end
        while i > 0 and text[i - 1] in _OPENERS:
            opened = _matching_open(text, i - 1)
            if opened < 0:
                return start
            i = opened
        while i > 0 and _is_identifier_char(text[i - 1]):
            i -= 1
        if i == segment_end:
            return start
        start = i
    return start


def _collapse_calls(text: str) -> str:
    """`obj.GetTarget()` -> `getTarget`, innermost/rightmost call first."""
    while "(" in text and ")" in text:
        open_at = text.rfind("(")
        close_at = text.find(")", open_at)
        if open_at <= 0 or close_at == -1:
            break
        name_start, name_end = _method_name_span(text, open_at)
        if name_start == name_end:
            # casts and parenthesized values have nothing to collapse into
            break
        span_start = _receiver_start(text, name_start)
        text = text[:span_start] + _lower_first(text[name_start:name_end]) + text[close_at + 1:]
    return text


def normalize_parameter_name(text: str, type_name: Optional[str] = None) -> str:
    """
    Turns an argument's source text into a readable parameter name. Lossy on
    purpose; two arguments may well end up with the same name.

        this (type Player)  -> player
        this (type A.Kits)  -> a.Kits
        obj.GetTarget()     -> getTarget
        player.net.ID       -> playerNetID
        item.ToString       -> item
    """
    if not text:
        return DEFAULT_PARAMETER_NAME

    if text == "this" and type_name and type_name != UNKNOWN_TYPE:
        return _lower_first(type_name)

    name = _collapse_calls(text)

    if "." in name:
        head, *rest = name.split(".")
        name = head + "".join(_upper_first(part) for part in rest if part)

    name = name.replace("ToString", "")
    return name or DEFAULT_PARAMETER_NAME


def array_elements(expression) -> Optional[list]:
    """Elements of `new T[] { ... }` / `new[] { ... }`, None for anything else."""
    if expression.type not in ARRAY_CREATIONS:
        return None
    initializer = first_child_of_type(expression, "initializer_expression")
    if initializer is None:
        return None
    return expression_children(initializer)


class ArgumentResolver:
    """Builds the hook's parameter list from the call arguments after the hook name."""

    def __init__(self, binder: TypeBinder):
        self.binder = binder

    def resolve(self, arguments) -> list[ParameterDescriptor]:
        parameters = []
        for expression in arguments:
            if expression.type == "null_literal":
                continue
            # `CallHook("X", new object[] { a, b })` is a two-parameter hook
            elements = array_elements(expression)
            if elements is None:
                parameters.append(self.describe(expression))
                continue
            for element in elements:
                if element.type != "null_literal":
                    parameters.append(self.describe(element))
        return parameters

    def describe(self, expression) -> ParameterDescriptor:
        type_name = self.binder.type_of(expression) or UNKNOWN_TYPE
        text = node_text(self.binder.source_bytes, expression)
        return ParameterDescriptor(type=type_name, name=normalize_parameter_name(text, type_name))
