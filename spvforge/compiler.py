import copy
import os
import sys
from pathlib import Path

from .errors import CompilationError, LoadError, TranslatorError, WriteError
from .includes import SearchPaths, resolve_include
from .options import CompileOptions, ShaderKind
from .spirv import artifact_path, read_words, write_words
from .translator import GlslangTranslator

ENTRY_POINT = 'main'
MEMORY_SOURCE = 'memory'


class CompilerBuilder:
    """
    Fluent configuration for a Compiler.

    Every option is forwarded untouched to the translator. Defining a macro
    disables the persisted .spv cache, since artifacts are keyed by path only.
    """
    def __init__(self):
        self.options = CompileOptions()
        self.include_dirs = []
        self.translator = None

    @property
    def has_macros(self) -> bool:
        return bool(self.options.macros)

    def with_target_spirv(self, version):
        self.options.set_target_spirv(version)
        return self

    def with_macro(self, name: str, value: str = None):
        self.options.add_macro_definition(name, value)
        return self

    def with_auto_bind_uniforms(self, auto_bind: bool):
        self.options.set_auto_bind_uniforms(auto_bind)
        return self

    def with_binding_base(self, kind, base: int):
        self.options.set_binding_base(kind, base)
        return self

    def generate_debug_info(self):
        self.options.set_generate_debug_info()
        return self

    def force_version_profile(self, version: int, profile):
        self.options.set_forced_version_profile(version, profile)
        return self

    def with_target_env(self, env, version: int):
        self.options.set_target_env(env, version)
        return self

    def with_hlsl_io_mapping(self, iomap: bool):
        self.options.set_hlsl_io_mapping(iomap)
        return self

    def with_hlsl_register_set_and_binding(self, register: str, set: str, binding: str):
        self.options.set_hlsl_register_set_and_binding(register, set, binding)
        return self

    def with_hlsl_offsets(self, offsets: bool):
        self.options.set_hlsl_offsets(offsets)
        return self

    def with_source_language(self, lang):
        self.options.set_source_language(lang)
        return self

    def with_binding_base_for_stage(self, kind: ShaderKind, resource_kind, base: int):
        self.options.set_binding_base_for_stage(kind, resource_kind, base)
        return self

    def with_opt_level(self, level):
        self.options.set_optimization_level(level)
        return self

    def suppress_warnings(self):
        self.options.set_suppress_warnings()
        return self

    def with_warnings_as_errors(self):
        self.options.set_warnings_as_errors()
        return self

    def with_limit(self, limit, value: int):
        self.options.set_limit(limit, value)
        return self

    def with_include_dir(self, path):
        if not Path(path).is_dir():
            print(f"WARNING: Include directory '{path}' does not exist.", file=sys.stderr)
        self.include_dirs.append(Path(path))
        return self

    def with_translator(self, translator):
        """Uses `translator` instead of the default glslangValidator backend."""
        self.translator = translator
        return self

    def build(self):
        """
        Creates the Compiler.

        Returns:
            Compiler | None: None if no translator is available, e.g. when
            `glslangValidator` cannot be found on PATH.
        """
        translator = self.translator or GlslangTranslator.create()
        if translator is None:
            return None
        return Compiler(
            translator,
            options=self.options,
            include_dirs=self.include_dirs,
        )


class Compiler:
    """
    Compiles shader files to SPIR-V words with a two-tier cache.

    Results are kept in memory for the lifetime of the instance and, when
    caching is requested, persisted next to the source as `<source>.spv`.
    A persisted artifact is reused only while it is strictly newer than its
    source. Entries are keyed by the resolved source path alone and are
    never evicted.

    A Compiler is not thread-safe: run one compile at a time per instance.
    """
    def __init__(self, translator, options: CompileOptions = None, include_dirs=()):
        self.translator = translator
        # Copied: the include callback below is bound to this instance.
        self.options = copy.deepcopy(options) if options is not None else CompileOptions()
        self.compile_cache = {}
        self._include_dirs = SearchPaths(include_dirs)

        search_paths = self._include_dirs
        self.options.set_include_callback(
            lambda requested, include_type, requesting, depth: resolve_include(
                search_paths, requested, include_type, requesting, depth
            )
        )

    @classmethod
    def new(cls):
        """Creates a Compiler with default options, or None if no translator is available."""
        return CompilerBuilder().build()

    def __repr__(self):
        return (
            f"Compiler(compile_cache={sorted(str(p) for p in self.compile_cache)}, "
            f"include_dirs={self._include_dirs!r}, has_macros={self.has_macros})"
        )

    @property
    def has_macros(self) -> bool:
        """True once any macro is defined; persisted artifacts are then ignored."""
        return bool(self.options.macros)

    @property
    def include_dirs(self) -> list:
        return self._include_dirs.snapshot()

    def add_include_dir(self, path):
        self._include_dirs.add(path)

    def add_macro_definition(self, name: str, value: str = None):
        self.options.add_macro_definition(name, value)

    def cached_paths(self) -> list:
        return list(self.compile_cache)

    def compile_from_string(self, source: str, kind: ShaderKind):
        """
        Compiles in-memory source. Never reads or writes any cache.

        Raises:
            CompilationError: If the translator rejects the source.
        """
        try:
            result = self.translator.compile_into_spirv(source, kind, MEMORY_SOURCE, ENTRY_POINT, self.options)
        except TranslatorError as e:
            raise CompilationError(None, str(e)) from e
        return result.binary

    def compile_from_file(self, path, kind: ShaderKind, cache: bool = True):
        """
        Compiles a shader file, consulting the caches first when `cache` is set.

        Args:
            path (str | Path): The shader source file.
            kind (ShaderKind): Pipeline stage of the shader.
            cache (bool): Reuse and persist `<path>.spv` artifacts.

        Returns:
            numpy.ndarray: The SPIR-V words (read-only).

        Raises:
            LoadError: If the source cannot be read.
            CompilationError: If the translator rejects the source.
            WriteError: If the `.spv` artifact cannot be written.
        """
        path = Path(path)
        key = path.resolve()
        precompiled = artifact_path(path)

        if cache:
            if key in self.compile_cache:
                return self.compile_cache[key]

            if not self.has_macros and precompiled.exists() and self._artifact_is_fresh(path, precompiled):
                words = self._load_artifact(precompiled)
                if words is not None:
                    return self._store(key, words)

        try:
            with open(path, 'r') as f:
                source = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(str(e)) from e

        try:
            result = self.translator.compile_into_spirv(source, kind, str(path), ENTRY_POINT, self.options)
        except TranslatorError as e:
            raise CompilationError(path, str(e)) from e

        if result.num_warnings > 0:
            print(
                f"WARNING: File {path} produced {result.num_warnings} warnings: {result.warning_messages}",
                file=sys.stderr,
            )
        words = result.binary

        if cache:
            try:
                write_words(precompiled, words)
            except OSError as e:
                raise WriteError(str(e)) from e

        return self._store(key, words)

    @staticmethod
    def _artifact_is_fresh(source: Path, precompiled: Path) -> bool:
        try:
            source_mtime = os.stat(source).st_mtime_ns
            artifact_mtime = os.stat(precompiled).st_mtime_ns
        except OSError:
            return False
        return source_mtime < artifact_mtime

    @staticmethod
    def _load_artifact(precompiled: Path):
        try:
            return read_words(precompiled)
        except OSError:
            return None
        except ValueError as e:
            print(f"WARNING: Ignoring malformed artifact '{precompiled}': {e}", file=sys.stderr)
            return None

    def _store(self, key: Path, words):
        words = words.copy()
        words.flags.writeable = False
        self.compile_cache[key] = words
        return words
