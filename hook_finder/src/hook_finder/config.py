# --- Configuration -----------------------------------------------------------
import json
from typing import Optional

# Receivers whose type (or any ancestor of it) is one of these may dispatch hooks
RECOGNIZED_TYPES = frozenset({
    "Oxide.Core.Interface",
    "Oxide.Core.OxideMod",
    "Oxide.Core.Libraries.Plugins",
    "Oxide.Core.Plugins.Plugin",
    "Oxide.Core.Plugins.PluginManager",
    "Oxide.Plugins.CSharpPlugin",
})

# Member names that all mean "dispatch a hook by name"
CALL_ALIASES = frozenset({"CallHook", "DirectCallHook", "OnCallHook", "Call"})

# Framework types that live in other assemblies and therefore never show up in
# the decompiled module being scanned. Only what the binder needs to follow
# receivers like `Interface.Oxide.CallHook(...)` or `plugins.Call(...)`.
FRAMEWORK_TYPES: dict[str, dict] = {
    "Oxide.Core.Interface": {
        "members": {
            "Oxide": "Oxide.Core.OxideMod",
            "uMod": "Oxide.Core.OxideMod",
        },
    },
    "Oxide.Core.OxideMod": {
        "members": {
            "RootPluginManager": "Oxide.Core.Plugins.PluginManager",
        },
    },
    "Oxide.Core.Plugins.PluginManager": {},
    "Oxide.Core.Libraries.Library": {},
    "Oxide.Core.Libraries.Plugins": {
        "base": "Oxide.Core.Libraries.Library",
        "members": {
            "PluginManager": "Oxide.Core.Plugins.PluginManager",
        },
    },
    "Oxide.Core.Plugins.Plugin": {
        "members": {
            "Manager": "Oxide.Core.Plugins.PluginManager",
            "Name": "string",
            "Title": "string",
            "Author": "string",
        },
    },
    "Oxide.Core.Plugins.CSPlugin": {"base": "Oxide.Core.Plugins.Plugin"},
    "Oxide.Plugins.CSharpPlugin": {
        "base": "Oxide.Core.Plugins.CSPlugin",
        "members": {
            "plugins": "Oxide.Core.Libraries.Plugins",
        },
    },
    "Oxide.Plugins.RustPlugin": {"base": "Oxide.Plugins.CSharpPlugin"},
    "Oxide.Plugins.CovalencePlugin": {"base": "Oxide.Plugins.CSharpPlugin"},
}

UNKNOWN_TYPE = "unknown"
DEFAULT_PARAMETER_NAME = "param"
UNKNOWN_CLASS = "UnknownClass"
UNKNOWN_METHOD = "UnknownMethod"

SOURCE_EXTENSIONS = (".cs",)

# Layout expected by the rust-template project
RUST_ANALYZER_DIR = ".rust-analyzer"
HOOKS_FILE = "hooks.json"
EMPTY_COMPANION_FILES = ("deprecatedHooks.json", "stringPool.json")


def load_framework_types(path: Optional[str] = None) -> dict[str, dict]:
    """
    Returns the built-in framework type table, merged with a user supplied
    JSON file of the same shape ({"Qualified.Name": {"base": ..., "members": {...}}}).
    Entries from the file replace built-in entries with the same name.
    """
    types = {name: dict(info) for name, info in FRAMEWORK_TYPES.items()}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            extra = json.load(f)
        if not isinstance(extra, dict):
            raise ValueError(f"Framework type table must be a JSON object: {path}")
        types.update(extra)
    return types
