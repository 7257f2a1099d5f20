# --- Enclosing method / class of a hook call ---------------------------------
from typing import Optional

from hook_finder.src.hook_finder.binder import TypeBinder
from hook_finder.src.hook_finder.config import UNKNOWN_CLASS, UNKNOWN_METHOD
from hook_finder.src.hook_finder.models.hook_models import EnclosingContext, ParameterDescriptor
from hook_finder.src.hook_finder.tree_sitter_helpers import ancestors, named_children, node_point, node_text

NAMED_FUNCTIONS = ("method_declaration", "constructor_declaration")


class EnclosingContextLocator:
    """
    Attributes a call to the function and class that contain it. Calls that
    sit outside any method, constructor or local function (field
    initializers, property bodies, ...) cannot be attributed.
    """

    def __init__(self, binder: TypeBinder):
        self.binder = binder

    def _text(self, node) -> str:
        return node_text(self.binder.source_bytes, node)

    def locate(self, call) -> Optional[EnclosingContext]:
        local_function = None
        named_function = None
        class_node = None

        # Nearest of each kind; the nearest class ends the search
        for anc in ancestors(call):
            if anc.type == "local_function_statement":
                if local_function is None:
                    local_function = anc
            elif anc.type in NAMED_FUNCTIONS:
                if named_function is None:
                    named_function = anc
            elif anc.type == "class_declaration":
                class_node = anc
                break

        if class_node is None and self.binder.class_nodes:
            class_node = self.binder.class_nodes[0]

        function = local_function if local_function is not None else named_function
        if function is None:
            return None

        if local_function is not None and named_function is not None:
            method_name = f"{self._name_of(named_function)}.{self._name_of(local_function)}"
        else:
            method_name = self._name_of(function)

        call_line, _ = node_point(call)
        function_line, _ = node_point(function)
        return EnclosingContext(
            class_name=self._name_of(class_node) if class_node is not None else UNKNOWN_CLASS,
            method_name=method_name or UNKNOWN_METHOD,
            method_node=function,
            line_invoke=call_line - function_line + 1,
            parameters=tuple(self.declared_parameters(function)),
        )

    def _name_of(self, declaration) -> str:
        name_node = declaration.child_by_field_name("name")
        return self._text(name_node) if name_node is not None else ""

    def declared_parameters(self, function) -> list[ParameterDescriptor]:
        """The function's own parameters; ones without a resolvable type are left out."""
        parameters = []
        parameter_list = function.child_by_field_name("parameters")
        if parameter_list is None:
            return parameters
        for parameter in named_children(parameter_list):
            if parameter.type != "parameter":
                continue
            type_name = self.binder.resolve_type_node(parameter.child_by_field_name("type"))
            name_node = parameter.child_by_field_name("name")
            if type_name is None or name_node is None:
                continue
            parameters.append(ParameterDescriptor(type=type_name, name=self._text(name_node)))
        return parameters
