# --- Data models for hook call sites -----------------------------------------
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParameterDescriptor:
    """A `type name` pair, used for hook arguments and method parameters."""
    type: str  # display name, e.g. "BasePlayer", or "unknown"
    name: str  # normalized identifier, e.g. "player"

    def __str__(self) -> str:
        return f"{self.type} {self.name}"


@dataclass(frozen=True)
class HookCall:
    """A call that passed detection: the hook name and the arguments after it."""
    hook_name: str
    arguments: tuple  # tree-sitter expression nodes, argument 1 onward


@dataclass(frozen=True)
class EnclosingContext:
    """Where a hook call lives."""
    class_name: str
    method_name: str
    method_node: object  # method_declaration / constructor_declaration / local_function_statement
    line_invoke: int  # 1-based, relative to the first line of method_node
    parameters: tuple[ParameterDescriptor, ...]


@dataclass(frozen=True)
class HookRecord:
    """One extracted hook call site. Equality covers every field."""
    hook_name: str
    hook_signature: str  # e.g. "OnPlayerInit(BasePlayer player)"
    method_name: str  # e.g. "OnServerInitialized" or "Init.Notify"
    method_parameters: tuple[ParameterDescriptor, ...]
    method_source_code: str
    method_class_name: str
    hook_line_invoke: int

    @property
    def method_signature(self) -> str:
        return f"{self.method_name}({', '.join(str(p) for p in self.method_parameters)})"


@dataclass
class ModuleHooks:
    """Records found in one module, keyed by hook signature (first seen wins)."""
    module: str
    hooks: dict[str, HookRecord] = field(default_factory=dict)
