class HookfinderError(Exception):
    pass


class LanguageLoadError(HookfinderError):
    """The tree-sitter Java grammar could not be loaded."""


class HookInstallError(HookfinderError):
    """A substrate could not bind a hook to the requested method."""

    def __init__(self, type_name: str, method_name: str, reason: str):
        super().__init__(f"cannot hook {type_name}.{method_name}: {reason}")
        self.type_name = type_name
        self.method_name = method_name
        self.reason = reason
