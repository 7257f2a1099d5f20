# --- Declaration-based type binder -------------------------------------------
from dataclasses import dataclass, field
from typing import Iterator, Optional

from hook_finder.src.hook_finder.config import FRAMEWORK_TYPES
from hook_finder.src.hook_finder.tree_sitter_helpers import (
    ancestors,
    first_child_of_type,
    expression_children,
    named_children,
    node_text,
    simple_name,
    walk_preorder,
)

TYPE_DECLARATIONS = (
    "class_declaration",
    "struct_declaration",
    "record_declaration",
    "record_struct_declaration",
    "interface_declaration",
    "enum_declaration",
)

# Nodes that open a parameter/local scope
FUNCTION_LIKE = (
    "method_declaration",
    "constructor_declaration",
    "destructor_declaration",
    "local_function_statement",
    "operator_declaration",
    "conversion_operator_declaration",
    "lambda_expression",
    "anonymous_method_expression",
)

NAMESPACES = ("namespace_declaration", "file_scoped_namespace_declaration")

PREDEFINED_TYPES = frozenset({
    "bool", "byte", "sbyte", "char", "decimal", "double", "float", "int", "uint",
    "long", "ulong", "short", "ushort", "object", "string", "void", "nint",
    "nuint", "dynamic",
})

# CLR names that display as their C# keyword
SYSTEM_ALIASES = {
    "System.Boolean": "bool",
    "System.Byte": "byte",
    "System.SByte": "sbyte",
    "System.Char": "char",
    "System.Decimal": "decimal",
    "System.Double": "double",
    "System.Single": "float",
    "System.Int32": "int",
    "System.UInt32": "uint",
    "System.Int64": "long",
    "System.UInt64": "ulong",
    "System.Int16": "short",
    "System.UInt16": "ushort",
    "System.Object": "object",
    "System.String": "string",
    "System.Void": "void",
}

STRING_LITERALS = (
    "string_literal",
    "verbatim_string_literal",
    "raw_string_literal",
    "interpolated_string_expression",
)

BOOLEAN_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||"})


@dataclass
class TypeDecl:
    """A type declared inside the module being scanned."""
    name: str
    qualified: str
    kind: str  # tree-sitter node type, e.g. "class_declaration"
    node: object
    bases: list = field(default_factory=list)  # base_list entries, as nodes
    members: dict = field(default_factory=dict)  # member name -> type node


def type_key(type_name: str) -> str:
    """`List<int>` -> `List`, `Plugin?` -> `Plugin`; used for table lookups."""
    return type_name.split("<", 1)[0].rstrip("?")


def split_type_arguments(text: str) -> list[str]:
    """Splits `string, List<int>` on top-level commas only."""
    parts, depth, start = [], 0, 0
    for i, ch in enumerate(text):
        if ch in "<([":
            depth += 1
        elif ch in ">)]":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    parts.append(text[start:].strip())
    return [p for p in parts if p]


def element_type(container: Optional[str], indexing: bool = False) -> Optional[str]:
    """
    Element type of an array or a generic collection, as seen by `foreach`
    (indexing=False) or by `x[i]` (indexing=True). Dictionaries enumerate
    KeyValuePairs but index to their value type.
    """
    if not container:
        return None
    if container.endswith("[]"):
        return container[:-2]
    if container.endswith(">") and "<" in container:
        idx = container.index("<")
        args = split_type_arguments(container[idx + 1:-1])
        if len(args) == 2 and type_key(container).endswith("Dictionary"):
            if indexing:
                return args[1]
            return f"System.Collections.Generic.KeyValuePair<{args[0]}, {args[1]}>"
        if len(args) == 1:
            return args[0]
    return None


def _looks_like_interface(type_name: str) -> bool:
    simple = type_name.rsplit(".", 1)[-1]
    return len(simple) > 1 and simple[0] == "I" and simple[1].isupper()


def _declarator_parts(declarator) -> tuple[object, object]:
    """(name node, initializer node) of a `variable_declarator`; either may be None."""
    name_node = declarator.child_by_field_name("name")
    if name_node is None:
        name_node = first_child_of_type(declarator, "identifier")
    after_equals = False
    for child in declarator.children:
        if child.type == "equals_value_clause":
            inner = named_children(child)
            return name_node, (inner[0] if inner else None)
        if child.type == "=":
            after_equals = True
        elif after_equals and child.is_named and child.type != "comment":
            return name_node, child
    return name_node, None


def _integer_literal_type(text: str) -> str:
    suffix = text.lower()
    if suffix.endswith(("ul", "lu")):
        return "ulong"
    if suffix.endswith("l"):
        return "long"
    if suffix.endswith("u"):
        return "uint"
    return "int"


def _real_literal_type(text: str) -> str:
    suffix = text.lower()
    if suffix.endswith("f"):
        return "float"
    if suffix.endswith("m"):
        return "decimal"
    return "double"


class TypeBinder:
    """
    Answers two questions about one parsed module:
      - what is the static type of this expression node (or None), and
      - what is the declared base type of this type (or None).

    Knowledge comes from the module's own declarations (usings, namespaces,
    types, members, parameters and locals) plus a table of framework types
    that live in other assemblies. It is a best-effort binder: anything it
    cannot follow resolves to None instead of raising.
    """

    def __init__(self, source_bytes: bytes, root, framework_types: Optional[dict] = None):
        self.source_bytes = source_bytes
        self.root = root
        self.framework: dict[str, dict] = framework_types if framework_types is not None else FRAMEWORK_TYPES

        self.usings: list[str] = []
        self.aliases: dict[str, str] = {}
        self.types: dict[str, TypeDecl] = {}  # qualified name -> TypeDecl
        self.class_nodes: list = []  # class declarations in document order
        self._qualified_by_node: dict[int, str] = {}
        self._file_namespace: Optional[str] = None

        self._declarations: dict[int, dict[str, list]] = {}  # function node id -> name -> entries
        self._resolving: set[int] = set()
        self._cache: dict[int, Optional[str]] = {}

        self._index()

    def text(self, node) -> str:
        return node_text(self.source_bytes, node)

    # -- Indexing -------------------------------------------------------------

    def _index(self):
        for node in walk_preorder(self.root):
            if node.type == "using_directive":
                self._index_using(node)
            elif node.type == "file_scoped_namespace_declaration" and self._file_namespace is None:
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    self._file_namespace = self.text(name_node)

        for node in walk_preorder(self.root):
            if node.type in TYPE_DECLARATIONS:
                self._index_type(node)

    def _index_using(self, node):
        if first_child_of_type(node, "static") is not None:
            return
        names = [c for c in named_children(node)
                 if c.type in ("identifier", "qualified_name", "generic_name", "alias_qualified_name")]
        if not names:
            return
        if first_child_of_type(node, "=") is not None and len(names) >= 2:
            self.aliases[self.text(names[0])] = self.text(names[-1])
        else:
            self.usings.append(self.text(names[-1]))

    def _namespace_parts(self, node) -> list[str]:
        parts = []
        seen_file_namespace = False
        for anc in ancestors(node):
            if anc.type in NAMESPACES:
                name_node = anc.child_by_field_name("name")
                if name_node is not None:
                    parts.append(self.text(name_node))
                seen_file_namespace = seen_file_namespace or anc.type == "file_scoped_namespace_declaration"
        if self._file_namespace and not seen_file_namespace:
            parts.append(self._file_namespace)
        return list(reversed(parts))

    def _index_type(self, node):
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = self.text(name_node)
        outer = self.enclosing_type_of(node)
        if outer:
            qualified = f"{outer}.{name}"
        else:
            qualified = ".".join(self._namespace_parts(node) + [name])
        self._qualified_by_node[node.id] = qualified

        decl = TypeDecl(name=name, qualified=qualified, kind=node.type, node=node)
        base_list = first_child_of_type(node, "base_list")
        if base_list is not None:
            for entry in named_children(base_list):
                if entry.type == "primary_constructor_base_type":
                    inner = named_children(entry)
                    if not inner:
                        continue
                    entry = inner[0]
                if entry.type == "argument_list":
                    continue
                decl.bases.append(entry)

        body = node.child_by_field_name("body")
        if body is None:
            body = first_child_of_type(node, "declaration_list", "enum_member_declaration_list")
        if body is not None:
            self._index_members(decl, body)

        # First declaration wins for partial classes; members are merged
        existing = self.types.get(qualified)
        if existing is None:
            self.types[qualified] = decl
        else:
            for member, type_node in decl.members.items():
                existing.members.setdefault(member, type_node)
            if not existing.bases:
                existing.bases = decl.bases
        if node.type == "class_declaration":
            self.class_nodes.append(node)

    def _index_members(self, decl: TypeDecl, body):
        for member in named_children(body):
            if member.type == "field_declaration":
                declaration = first_child_of_type(member, "variable_declaration")
                if declaration is None:
                    continue
                type_node = declaration.child_by_field_name("type")
                for name, _ in self._declarators(declaration):
                    decl.members[name] = type_node
            elif member.type == "property_declaration":
                name_node = member.child_by_field_name("name")
                if name_node is not None:
                    decl.members[self.text(name_node)] = member.child_by_field_name("type")
            elif member.type == "method_declaration":
                name_node = member.child_by_field_name("name")
                if name_node is not None:
                    returns = member.child_by_field_name("returns")
                    if returns is None:
                        returns = member.child_by_field_name("type")
                    decl.members.setdefault(self.text(name_node), returns)

    def _declarators(self, declaration) -> Iterator[tuple[str, object]]:
        """(name, initializer) for each `variable_declarator` in a declaration."""
        for declarator in named_children(declaration):
            if declarator.type != "variable_declarator":
                continue
            name_node, initializer = _declarator_parts(declarator)
            if name_node is not None:
                yield self.text(name_node), initializer

    # -- Type names -----------------------------------------------------------

    def is_known(self, type_name: Optional[str]) -> bool:
        if not type_name:
            return False
        key = type_key(type_name)
        return key in self.types or key in self.framework

    def _scopes(self, context) -> list[str]:
        """Enclosing type/namespace prefixes, innermost first, ending with ''."""
        base = None
        if context is not None:
            if context.type in TYPE_DECLARATIONS:
                base = self._qualified_by_node.get(context.id)
            if base is None:
                base = self.enclosing_type_of(context)
            if base is None:
                base = ".".join(self._namespace_parts(context))
        parts = base.split(".") if base else []
        scopes = []
        while parts:
            scopes.append(".".join(parts))
            parts.pop()
        scopes.append("")
        return scopes

    def qualify(self, type_text: str, context=None) -> str:
        """
        Display name for a type as written at `context`: C# keywords stay
        keywords, known types get their fully qualified name, anything else is
        returned as written.
        """
        text = "".join(type_text.split())
        if text.startswith("global::"):
            text = text[len("global::"):]
        if not text or text.startswith("("):
            return text
        if text.endswith("?"):
            return self.qualify(text[:-1], context) + "?"
        if text.endswith("]") and "[" in text:
            idx = text.rindex("[")
            return self.qualify(text[:idx], context) + text[idx:]
        if text.endswith(">") and "<" in text:
            idx = text.index("<")
            args = split_type_arguments(text[idx + 1:-1])
            qualified_args = ", ".join(self.qualify(a, context) for a in args)
            return f"{self._qualify_name(text[:idx], context)}<{qualified_args}>"
        return self._qualify_name(text, context)

    def _qualify_name(self, name: str, context) -> str:
        if name in PREDEFINED_TYPES:
            return name
        if name in SYSTEM_ALIASES:
            return SYSTEM_ALIASES[name]
        if "System" in self.usings and f"System.{name}" in SYSTEM_ALIASES:
            return SYSTEM_ALIASES[f"System.{name}"]

        for scope in self._scopes(context):
            candidate = f"{scope}.{name}" if scope else name
            if self.is_known(candidate):
                return candidate
        for namespace in self.usings:
            candidate = f"{namespace}.{name}"
            if self.is_known(candidate):
                return candidate

        head, _, rest = name.partition(".")
        if head in self.aliases:
            target = self.aliases[head]
            return f"{target}.{rest}" if rest else target
        return name

    def resolve_type_node(self, type_node) -> Optional[str]:
        """Display name of a written type, None for a missing type or `var`."""
        if type_node is None:
            return None
        text = self.text(type_node).strip()
        if not text or text == "var":
            return None
        return self.qualify(text, type_node)

    # -- Hierarchy ------------------------------------------------------------

    def enclosing_type_of(self, node) -> Optional[str]:
        for anc in ancestors(node):
            if anc.type in TYPE_DECLARATIONS and anc.type != "enum_declaration":
                return self._qualified_by_node.get(anc.id)
        return None

    def base_type_of(self, type_name: Optional[str]) -> Optional[str]:
        """Declared base class of a type; interfaces are never bases here."""
        if not type_name:
            return None
        key = type_key(type_name)
        decl = self.types.get(key)
        if decl is not None:
            if decl.kind not in ("class_declaration", "record_declaration"):
                return None
            for base in decl.bases:
                resolved = self.qualify(self.text(base), decl.node)
                base_key = type_key(resolved)
                base_decl = self.types.get(base_key)
                if base_decl is not None:
                    if base_decl.kind == "interface_declaration":
                        continue
                    return resolved
                if base_key in self.framework:
                    return resolved
                if _looks_like_interface(base_key):
                    continue
                return resolved
            return None
        info = self.framework.get(key)
        if info:
            return info.get("base")
        return None

    def ancestor_chain(self, type_name: Optional[str]) -> Iterator[str]:
        """The type itself, then each declared base type. Stops on cycles."""
        seen = set()
        current = type_name
        while current:
            key = type_key(current)
            if key in seen:
                return
            seen.add(key)
            yield key
            current = self.base_type_of(current)

    def member_type(self, type_name: Optional[str], member: Optional[str]) -> Optional[str]:
        """Type of a field/property (or return type of a method), searched up the chain."""
        if not type_name or not member:
            return None
        for ancestor in self.ancestor_chain(type_name):
            decl = self.types.get(ancestor)
            if decl is not None:
                if decl.kind == "enum_declaration":
                    return decl.qualified
                if member in decl.members:
                    resolved = self.resolve_type_node(decl.members[member])
                    return None if resolved == "void" else resolved
            info = self.framework.get(ancestor)
            if info and member in info.get("members", {}):
                return info["members"][member]
        return None

    # -- Expressions ----------------------------------------------------------

    def type_of(self, node) -> Optional[str]:
        """Static type display name of an expression node, or None."""
        if node is None:
            return None
        if node.id in self._cache:
            return self._cache[node.id]
        # Guards against `var a = b; var b = a;` style cycles in broken input
        if node.id in self._resolving:
            return None
        self._resolving.add(node.id)
        try:
            resolved = self._type_of(node)
        finally:
            self._resolving.discard(node.id)
        self._cache[node.id] = resolved
        return resolved

    def _type_of(self, node) -> Optional[str]:
        kind = node.type
        if kind in STRING_LITERALS:
            return "string"
        if kind == "integer_literal":
            return _integer_literal_type(self.text(node))
        if kind == "real_literal":
            return _real_literal_type(self.text(node))
        if kind == "boolean_literal":
            return "bool"
        if kind == "character_literal":
            return "char"
        if kind in ("this", "this_expression"):
            return self.enclosing_type_of(node)
        if kind in ("base", "base_expression"):
            return self.base_type_of(self.enclosing_type_of(node))
        if kind == "identifier":
            return self._identifier_type(node)
        if kind == "predefined_type":
            return self.qualify(self.text(node), node)
        if kind in ("qualified_name", "generic_name", "alias_qualified_name"):
            qualified = self.qualify(self.text(node), node)
            return qualified if self.is_known(qualified) else None
        if kind == "member_access_expression":
            return self._member_access_type(node)
        if kind == "invocation_expression":
            return self._invocation_type(node)
        if kind in ("object_creation_expression", "array_creation_expression",
                    "cast_expression", "default_expression"):
            return self.resolve_type_node(node.child_by_field_name("type"))
        if kind == "implicit_array_creation_expression":
            initializer = first_child_of_type(node, "initializer_expression")
            if initializer is None:
                return None
            for element in expression_children(initializer):
                element_type_name = self.type_of(element)
                if element_type_name:
                    return f"{element_type_name}[]"
            return None
        if kind == "as_expression":
            return self.resolve_type_node(node.child_by_field_name("right"))
        if kind in ("parenthesized_expression", "checked_expression"):
            inner = expression_children(node)
            return self.type_of(inner[-1]) if inner else None
        if kind == "conditional_expression":
            return (self.type_of(node.child_by_field_name("consequence"))
                    or self.type_of(node.child_by_field_name("alternative")))
        if kind in ("is_expression", "is_pattern_expression"):
            return "bool"
        if kind == "typeof_expression":
            return "System.Type"
        if kind == "sizeof_expression":
            return "int"
        if kind == "binary_expression":
            return self._binary_type(node)
        if kind == "prefix_unary_expression":
            if node.children and node.children[0].type == "!":
                return "bool"
            inner = expression_children(node)
            return self.type_of(inner[-1]) if inner else None
        if kind == "postfix_unary_expression":
            inner = expression_children(node)
            return self.type_of(inner[0]) if inner else None
        if kind == "assignment_expression":
            return self.type_of(node.child_by_field_name("left"))
        if kind == "element_access_expression":
            container = self.type_of(node.child_by_field_name("expression"))
            return element_type(container, indexing=True)
        return None

    def _binary_type(self, node) -> Optional[str]:
        # `a + b + c + ...` nests to the left; fold it bottom-up without recursing
        chain = []
        while node is not None and node.type == "binary_expression":
            chain.append(node)
            node = node.child_by_field_name("left")

        left = self.type_of(node)
        for binary in reversed(chain):
            left = self._combine(binary, left)
            self._cache[binary.id] = left
        return left

    def _combine(self, binary, left: Optional[str]) -> Optional[str]:
        operator = binary.child_by_field_name("operator")
        op = self.text(operator) if operator is not None else ""
        if op in BOOLEAN_OPERATORS:
            return "bool"
        right = self.type_of(binary.child_by_field_name("right"))
        if op == "+" and "string" in (left, right):
            return "string"
        if op == "??":
            return left.rstrip("?") if left else right
        return left or right

    def _member_access_type(self, node) -> Optional[str]:
        receiver = node.child_by_field_name("expression")
        name = simple_name(self.source_bytes, node.child_by_field_name("name"))
        receiver_type = self.type_of(receiver)
        if receiver_type:
            found = self.member_type(receiver_type, name)
            if found:
                return found
        # A dotted type name used as a static receiver, e.g. `Oxide.Core.Interface`
        qualified = self.qualify(self.text(node), node)
        return qualified if self.is_known(qualified) else None

    def _invocation_type(self, node) -> Optional[str]:
        function = node.child_by_field_name("function")
        if function is None:
            return None
        if function.type == "member_access_expression":
            receiver_type = self.type_of(function.child_by_field_name("expression"))
            name = simple_name(self.source_bytes, function.child_by_field_name("name"))
            return self.member_type(receiver_type, name)
        name = simple_name(self.source_bytes, function)
        return self.member_type(self.enclosing_type_of(node), name)

    def _identifier_type(self, node) -> Optional[str]:
        name = self.text(node)
        declared, local_type = self._local_type(node, name)
        if declared:
            return local_type

        found = self.member_type(self.enclosing_type_of(node), name)
        if found:
            return found

        # A type name used as a static receiver, e.g. `Interface`
        qualified = self.qualify(name, node)
        return qualified if self.is_known(qualified) else None

    # -- Parameters and locals ------------------------------------------------

    def _local_type(self, node, name: str) -> tuple[bool, Optional[str]]:
        """
        (declared, type) for a parameter or local visible at `node`. `declared`
        is True even when the declaration has no usable type (untyped lambda
        parameters), so outer members with the same name stay shadowed.
        """
        for scope in ancestors(node):
            if scope.type in TYPE_DECLARATIONS:
                break
            if scope.type not in FUNCTION_LIKE:
                continue

            parameters = scope.child_by_field_name("parameters")
            if parameters is not None:
                if parameters.type == "identifier":
                    if self.text(parameters) == name:
                        return True, None
                else:
                    for parameter in named_children(parameters):
                        if parameter.type != "parameter":
                            continue
                        pname = parameter.child_by_field_name("name")
                        if pname is not None and self.text(pname) == name:
                            return True, self.resolve_type_node(parameter.child_by_field_name("type"))

            candidates = [entry for entry in self._declarations_in(scope).get(name, [])
                          if entry[0] < node.start_byte]
            if candidates:
                return True, self._declaration_type(candidates[-1])
        return False, None

    def _declarations_in(self, function) -> dict[str, list]:
        """
        Local declarations in a function body (not in nested functions), as
        name -> [(position, kind, type_node, source_node)] in document order.
        """
        cached = self._declarations.get(function.id)
        if cached is not None:
            return cached

        found: dict[str, list] = {}

        def add(name_node, kind, type_node, source_node):
            if name_node is not None:
                found.setdefault(self.text(name_node), []).append(
                    (name_node.start_byte, kind, type_node, source_node))

        stack = list(reversed(function.children))
        while stack:
            node = stack.pop()
            if node.type in FUNCTION_LIKE:
                continue
            if node.type == "variable_declaration":
                type_node = node.child_by_field_name("type")
                for declarator in named_children(node):
                    if declarator.type == "variable_declarator":
                        name_node, initializer = _declarator_parts(declarator)
                        add(name_node, "local", type_node, initializer)
            elif node.type == "foreach_statement":
                left = node.child_by_field_name("left")
                if left is not None and left.type == "identifier":
                    add(left, "foreach", node.child_by_field_name("type"), node.child_by_field_name("right"))
            elif node.type in ("declaration_expression", "declaration_pattern", "catch_declaration"):
                type_node = node.child_by_field_name("type")
                name_node = node.child_by_field_name("name")
                if name_node is None:
                    identifiers = [c for c in named_children(node) if c.type == "identifier"]
                    if identifiers and (type_node is None or identifiers[-1].id != type_node.id):
                        name_node = identifiers[-1]
                add(name_node, "local", type_node, None)
            stack.extend(reversed(node.children))

        self._declarations[function.id] = found
        return found

    def _declaration_type(self, entry) -> Optional[str]:
        _, kind, type_node, source_node = entry
        declared = self.resolve_type_node(type_node)
        if declared:
            return declared
        # `var`: infer from the initializer / the enumerated collection
        if kind == "foreach":
            return element_type(self.type_of(source_node))
        return self.type_of(source_node)
