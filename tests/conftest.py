import pytest

from hook_finder.src.hook_finder.binder import TypeBinder
from hook_finder.src.hook_finder.indexer import HookIndexer
from hook_finder.src.hook_finder.tree_sitter_helpers import node_text, walk_preorder


@pytest.fixture(scope="session")
def indexer():
    return HookIndexer()


@pytest.fixture
def index(indexer):
    """Indexes a source string and returns its records in module order."""
    def _index(source: str, module: str = "<test>"):
        return list(indexer.index_source(source, module).hooks.values())
    return _index


class Bound:
    """A parsed source plus its binder, with a helper to grab nodes by text."""

    def __init__(self, indexer, source: str):
        self.source_bytes = source.encode("utf-8")
        self.tree = indexer.parser.parse(self.source_bytes)
        self.binder = TypeBinder(self.source_bytes, self.tree.root_node)

    def find(self, node_type: str, text: str, occurrence: int = 0):
        matches = [n for n in walk_preorder(self.tree.root_node)
                   if n.type == node_type and node_text(self.source_bytes, n) == text]
        return matches[occurrence]

    def type_of(self, node_type: str, text: str, occurrence: int = 0):
        return self.binder.type_of(self.find(node_type, text, occurrence))


@pytest.fixture
def bind(indexer):
    def _bind(source: str) -> Bound:
        return Bound(indexer, source)
    return _bind
