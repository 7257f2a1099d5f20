class HookFinderError(Exception):
    """Base class for errors that stop a whole run."""


class GrammarNotAvailable(HookFinderError):
    """The C# tree-sitter grammar could not be loaded."""


class InputNotFound(HookFinderError):
    pass


class NoModulesFound(HookFinderError):
    pass


class OutputDirectoryMissing(HookFinderError):
    pass
