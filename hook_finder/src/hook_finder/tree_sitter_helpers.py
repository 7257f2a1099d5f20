# --- Tree-sitter plumbing ----------------------------------------------------
from typing import Iterator, Optional


def node_text(source_bytes: bytes, node) -> str:
    """
    Converts a node's [start_byte:end_byte] into the corresponding string.
    Tree-sitter nodes only store byte offsets, so we slice the original source.
    """
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def node_point(node) -> tuple[int, int]:
    """
    Returns the (line, column) of a node's start in 0-based coordinates.
    """
    return (node.start_point[0], node.start_point[1])


def named_children(node) -> list:
    """Named children without comments (comments are extras and can appear anywhere)."""
    return [c for c in node.children if c.is_named and c.type != "comment"]


# The C# grammar leaves these expressions as anonymous keyword nodes
KEYWORD_EXPRESSIONS = ("this", "base")


def expression_children(node) -> list:
    """
    Like named_children, but keeps `this`/`base`. Use it wherever a child is
    an expression operand (arguments, initializer elements, ...).
    """
    return [c for c in node.children
            if (c.is_named and c.type != "comment") or c.type in KEYWORD_EXPRESSIONS]


def first_child_of_type(node, *types: str):
    for child in node.children:
        if child.type in types:
            return child
    return None


def ancestors(node) -> Iterator:
    """Yields the parents of a node, nearest first."""
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def simple_name(source_bytes: bytes, node) -> Optional[str]:
    """
    Text of an identifier, or of the identifier inside a generic name
    (`Call<object>` -> `Call`).
    """
    if node is None:
        return None
    if node.type == "identifier":
        return node_text(source_bytes, node)
    if node.type == "generic_name":
        ident = first_child_of_type(node, "identifier")
        return node_text(source_bytes, ident) if ident is not None else None
    return None


def walk_preorder(root) -> Iterator:
    """
    Document-order DFS. Children are pushed reversed so the first child is
    visited first.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))
