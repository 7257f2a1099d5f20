import logging
from typing import Optional

from tree_sitter import Language, Node, Parser, Tree

from hook_finder.src.hook_finder.arguments import ArgumentResolver
from hook_finder.src.hook_finder.binder import TypeBinder
from hook_finder.src.hook_finder.config import CALL_ALIASES, FRAMEWORK_TYPES, RECOGNIZED_TYPES
from hook_finder.src.hook_finder.enclosing import EnclosingContextLocator
from hook_finder.src.hook_finder.errors import GrammarNotAvailable
from hook_finder.src.hook_finder.hook_calls import HookCallDetector
from hook_finder.src.hook_finder.models.hook_models import (
    EnclosingContext,
    HookCall,
    HookRecord,
    ModuleHooks,
    ParameterDescriptor,
)
from hook_finder.src.hook_finder.tree_sitter_helpers import node_point, node_text, walk_preorder

logger = logging.getLogger(__name__)


# --- Tree-sitter language loading -------------------------------------------

def load_csharp_language() -> Language:
    """
    Loads the Tree-sitter C# grammar for the Python bindings.
    We try the standalone grammar wheel first (tree-sitter-c-sharp). If that
    isn't installed, we try the bundled grammars of tree-sitter-language-pack.
    """
    try:
        import tree_sitter_c_sharp
        return Language(tree_sitter_c_sharp.language())
    except ImportError:
        pass

    try:
        from tree_sitter_language_pack import get_language
        return get_language("csharp")
    except ImportError:
        pass

    raise GrammarNotAvailable(
        "Could not load the C# grammar.\n"
        "- Install `tree-sitter-c-sharp` (pip install tree-sitter-c-sharp), OR\n"
        "- Install `tree-sitter-language-pack` (pip install tree-sitter-language-pack)."
    )


# --- Record building ---------------------------------------------------------

def hook_signature(hook_name: str, parameters: list[ParameterDescriptor]) -> str:
    """`OnPlayerInit(BasePlayer player)`; the per-module dedup key."""
    return f"{hook_name}({', '.join(str(p) for p in parameters)})"


def build_record(source_bytes: bytes, call: HookCall, signature: str, context: EnclosingContext) -> HookRecord:
    return HookRecord(
        hook_name=call.hook_name,
        hook_signature=signature,
        method_name=context.method_name,
        method_parameters=context.parameters,
        method_source_code=node_text(source_bytes, context.method_node),
        method_class_name=context.class_name,
        hook_line_invoke=context.line_invoke,
    )


# --- The Indexer -------------------------------------------------------------

class HookIndexer:
    """
    Walks a Tree-sitter C# AST of one decompiled module and collects every
    hook dispatch call site: hook name, hook parameters and the method that
    makes the call.
    """

    def __init__(self, framework_types: Optional[dict] = None,
                 recognized_types=RECOGNIZED_TYPES, call_aliases=CALL_ALIASES):
        self.language = load_csharp_language()
        self.parser = Parser(self.language)
        self.framework_types = framework_types if framework_types is not None else FRAMEWORK_TYPES
        self.detector = HookCallDetector(recognized_types, call_aliases)

    def parse(self, source: str) -> Tree:
        """
        Parses a single source string into a Tree-sitter tree.
        """
        return self.parser.parse(source.encode("utf-8"))

    def index_source(self, source: str, module: str = "<source>") -> ModuleHooks:
        """
        Parses & indexes one module. Call sites that can't be resolved are
        skipped; they never abort the rest of the module.
        """
        source_bytes = source.encode("utf-8")
        tree: Tree = self.parser.parse(source_bytes)
        root: Node = tree.root_node
        if root.has_error:
            logger.debug("%s: source has syntax errors, indexing what parsed", module)

        binder = TypeBinder(source_bytes, root, self.framework_types)
        resolver = ArgumentResolver(binder)
        locator = EnclosingContextLocator(binder)
        result = ModuleHooks(module=module)

        # Document order matters: the first call with a given signature wins
        for node in walk_preorder(root):
            if node.type != "invocation_expression":
                continue
            try:
                self._index_call(node, binder, resolver, locator, result)
            except Exception as e:
                line, _ = node_point(node)
                logger.debug("%s:%d: skipped call site (%s: %s)", module, line + 1, type(e).__name__, e)

        logger.debug("%s: %d hook(s)", module, len(result.hooks))
        return result

    def _index_call(self, node: Node, binder: TypeBinder, resolver: ArgumentResolver,
                    locator: EnclosingContextLocator, result: ModuleHooks):
        call = self.detector.match(node, binder)
        if call is None:
            return

        signature = hook_signature(call.hook_name, resolver.resolve(call.arguments))
        if signature in result.hooks:
            return

        context = locator.locate(node)
        if context is None:
            # Not attributable; a later call with the same signature may still be
            return
        result.hooks[signature] = build_record(binder.source_bytes, call, signature, context)
