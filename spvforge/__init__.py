from .compiler import Compiler, CompilerBuilder
from .errors import (
    CompilerError, LoadError, WriteError, CompilationError,
    TranslatorError, IncludeError, IncludeNotFoundError, IncludeDepthError
)
from .includes import ResolvedInclude, SearchPaths, resolve_include, MAX_INCLUDE_DEPTH
from .options import (
    ShaderKind, IncludeType, TargetEnv, EnvVersion, SpirvVersion,
    OptimizationLevel, ResourceKind, GlslProfile, SourceLanguage, Limit,
    CompileOptions
)
from .translator import ShaderTranslator, GlslangTranslator, CompilationArtifact
from .watch import ShaderWatcher
