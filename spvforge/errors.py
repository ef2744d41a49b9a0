from pathlib import Path


class CompilerError(Exception):
    """Base class of every error returned by a compile entry point."""
    def __str__(self):
        return f"Error: {self._detail()}"

    def _detail(self) -> str:
        return super().__str__()


class LoadError(CompilerError):
    """The shader source could not be opened or read."""
    def __init__(self, description: str):
        super().__init__(description)
        self.description = description

    def _detail(self):
        return f"could not load file: {self.description}"


class WriteError(CompilerError):
    """The persisted .spv artifact could not be created or written."""
    def __init__(self, description: str):
        super().__init__(description)
        self.description = description

    def _detail(self):
        return f"could not write file: {self.description}"


class CompilationError(CompilerError):
    """
    The translator rejected the source.

    Args:
        file (Path | None): The offending source file, or None for sources
            compiled from a string.
        description (str): The translator's diagnostic text, verbatim.
    """
    def __init__(self, file, description: str):
        super().__init__(description)
        self.file = Path(file) if file is not None else None
        self.description = description

    def _detail(self):
        if self.file is not None:
            return f"file: {self.file}, description: {self.description}"
        return f"description: {self.description}"


class TranslatorError(RuntimeError):
    """Raised by a ShaderTranslator when translation fails."""


class IncludeError(LookupError):
    """An include directive could not be resolved."""


class IncludeNotFoundError(IncludeError):
    def __init__(self, requested_name: str):
        super().__init__(f"Could not find file: {requested_name}")
        self.requested_name = requested_name


class IncludeDepthError(IncludeError):
    def __init__(self, depth: int):
        super().__init__(f"Include depth {depth} too high!")
        self.depth = depth
