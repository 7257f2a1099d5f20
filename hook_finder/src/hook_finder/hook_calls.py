# --- Hook call detection -----------------------------------------------------
import re
from typing import Optional

from hook_finder.src.hook_finder.binder import TypeBinder
from hook_finder.src.hook_finder.config import CALL_ALIASES, RECOGNIZED_TYPES
from hook_finder.src.hook_finder.models.hook_models import HookCall
from hook_finder.src.hook_finder.tree_sitter_helpers import expression_children, named_children, node_text, simple_name

HOOK_NAME_LITERALS = ("string_literal", "verbatim_string_literal", "raw_string_literal")

_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|x[0-9a-fA-F]{1,4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "0": "\0", "a": "\a", "b": "\b",
    "f": "\f", "v": "\v", "\\": "\\", "\"": "\"", "'": "'",
}


def _unescape(match) -> str:
    escape = match.group(1)
    if escape[0] in "uUx" and len(escape) > 1:
        return chr(int(escape[1:], 16))
    return _SIMPLE_ESCAPES.get(escape, escape)


def string_literal_value(source_bytes: bytes, node) -> Optional[str]:
    """Decoded value of a C# string literal node, None for anything else."""
    if node is None or node.type not in HOOK_NAME_LITERALS:
        return None
    text = node_text(source_bytes, node)
    if node.type == "verbatim_string_literal":
        return text[2:-1].replace('""', '"')
    if node.type == "raw_string_literal":
        quotes = len(text) - len(text.lstrip('"'))
        return text[quotes:-quotes].strip()
    if text.endswith("u8"):
        text = text[:-2]
    return _ESCAPE.sub(_unescape, text[1:-1])


def argument_expressions(arguments) -> list:
    """
    The expression of each `argument` in an argument_list, in order.
    Named arguments (`name: value`), ref/out/in modifiers and punctuation
    are stripped.
    """
    expressions = []
    if arguments is None:
        return expressions
    for argument in named_children(arguments):
        if argument.type != "argument":
            continue
        inner = [c for c in expression_children(argument) if c.type != "name_colon"]
        if inner:
            expressions.append(inner[-1])
    return expressions


class HookCallDetector:
    """
    Decides whether an invocation dispatches a hook by literal name through
    one of the recognized framework types, e.g.

        Interface.CallHook("OnPlayerInit", player)
        plugins.Call("OnKitRedeemed", player, kit)
        CallHook("OnServerSave")            // implicit `this`
    """

    def __init__(self, recognized_types=RECOGNIZED_TYPES, call_aliases=CALL_ALIASES):
        self.recognized_types = frozenset(recognized_types)
        self.call_aliases = frozenset(call_aliases)

    def match(self, invocation, binder: TypeBinder) -> Optional[HookCall]:
        """Returns the HookCall for an accepted invocation, None otherwise."""
        function = invocation.child_by_field_name("function")
        if function is None:
            return None

        if function.type == "member_access_expression":
            name_node = function.child_by_field_name("name")
            receiver = function.child_by_field_name("expression")
        elif function.type in ("identifier", "generic_name"):
            name_node = function
            receiver = None
        else:
            return None

        # The name is cheaper to check than the receiver type, so it goes first
        if simple_name(binder.source_bytes, name_node) not in self.call_aliases:
            return None

        if receiver is not None:
            receiver_type = binder.type_of(receiver)
        else:
            receiver_type = binder.enclosing_type_of(invocation)
        if not self.is_recognized(receiver_type, binder):
            return None

        arguments = argument_expressions(invocation.child_by_field_name("arguments"))
        if not arguments:
            return None
        hook_name = string_literal_value(binder.source_bytes, arguments[0])
        if not hook_name:
            return None
        return HookCall(hook_name=hook_name, arguments=tuple(arguments[1:]))

    def is_recognized(self, type_name: Optional[str], binder: TypeBinder) -> bool:
        """True when the type or one of its declared base types is a framework type."""
        for ancestor in binder.ancestor_chain(type_name):
            if ancestor in self.recognized_types:
                return True
        return False
