import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .directives import ConditionalState
from .errors import IncludeError, TranslatorError
from .options import (
    CompileOptions, GlslProfile, IncludeType, OptimizationLevel, SourceLanguage, TargetEnv
)
from .spirv import as_words, read_words

GLSLANG_VALIDATOR = 'glslangValidator'

INCLUDE_PATTERN = re.compile(r'^\s*#\s*include\s*(?:<([^>]+)>|"([^"]+)")')
VERSION_PATTERN = re.compile(r'^\s*#\s*version\b')
VERSION_LINE_PATTERN = re.compile(r"^\s*#\s*version\s+(\d+)(?:\s+(\w+))?", re.MULTILINE)
LINE_DIRECTIVE_EXTENSION = '#extension GL_GOOGLE_cpp_style_line_directive : require'


@dataclass
class CompilationArtifact:
    """Successful translator output."""
    binary: np.ndarray
    num_warnings: int = 0
    warning_messages: str = ""

    def __post_init__(self):
        self.binary = as_words(self.binary)


class ShaderTranslator:
    """
    Interface of the component that turns shader source into SPIR-V.

    Implementations must call `options.include_callback` for every include
    directive they encounter and raise TranslatorError on failure.
    """
    def compile_into_spirv(self, source_text: str, kind, input_file_name: str,
                           entry_point_name: str, options: CompileOptions) -> CompilationArtifact:
        raise NotImplementedError


def expand_includes(source: str, source_name: str, include_callback, depth: int = 1,
                    conditionals: ConditionalState = None) -> str:
    """
    Inlines every active `#include` directive of `source`, recursively.

    Directives inside inactive `#if`/`#ifdef` branches are commented out
    instead of resolved. Macro definitions carry over between files, so
    include guards work across headers.

    Each inlined block is framed by `#line` directives so diagnostics point
    at the original file and line. Include failures become a TranslatorError
    whose text names the directive's location and the resolver's message.
    """
    if conditionals is None:
        conditionals = ConditionalState()

    lines = []
    for number, line in enumerate(source.splitlines(), start=1):
        match = INCLUDE_PATTERN.match(line)
        if not match:
            conditionals.feed(line)
            lines.append(line)
            continue
        if not conditionals.active:
            lines.append(f"// {line}")
            continue

        angle, quoted = match.groups()
        include_type = IncludeType.STANDARD if angle else IncludeType.RELATIVE
        requested = angle or quoted
        location = f"{source_name}:{number}: error: '#include'"
        if include_callback is None:
            raise TranslatorError(f"{location} : no include resolver registered for: {requested}")
        try:
            resolved = include_callback(requested, include_type, source_name, depth)
        except IncludeError as e:
            raise TranslatorError(f"{location} : {e}") from e

        body = expand_includes(resolved.content, resolved.resolved_name, include_callback, depth + 1, conditionals)
        lines.append(f'#line 1 "{resolved.resolved_name}"')
        lines.append(body)
        lines.append(f'#line {number + 1} "{source_name}"')
    return "\n".join(lines)


def predefined_macros(source_text: str, options: CompileOptions) -> dict:
    """Macros visible to `#if` before the first line: `-D` definitions and glslang's builtins."""
    macros = {name: '1' if value is None else value for name, value in options.macros.items()}
    if options.source_language == SourceLanguage.HLSL:
        return macros

    if options.target_env in (TargetEnv.OPENGL, TargetEnv.OPENGL_COMPAT):
        macros['GL_SPIRV'] = '100'
    else:
        macros['VULKAN'] = '100'

    version = VERSION_LINE_PATTERN.search(source_text)
    if options.forced_version_profile is not None:
        number, profile = options.forced_version_profile
        macros['__VERSION__'] = str(number)
        if profile == GlslProfile.ES:
            macros['GL_ES'] = '1'
    elif version:
        macros['__VERSION__'] = version.group(1)
        if version.group(2) == 'es':
            macros['GL_ES'] = '1'
    return macros


def prepare_source(source_text: str, source_name: str, options: CompileOptions) -> str:
    """Expands includes and pins the `#version` line and diagnostics file name."""
    conditionals = ConditionalState(predefined_macros(source_text, options))
    expanded = expand_includes(source_text, source_name, options.include_callback, conditionals=conditionals)
    if options.source_language == SourceLanguage.HLSL:
        return expanded

    lines = expanded.split("\n")
    version_index = next((i for i, line in enumerate(lines) if VERSION_PATTERN.match(line)), None)

    forced = None
    if options.forced_version_profile is not None:
        version, profile = options.forced_version_profile
        forced = f"#version {version} {profile.value}".rstrip()

    if version_index is None:
        header = [forced] if forced else []
        body = lines
        first_line = 1
    else:
        # Only comments may precede #version.
        header = lines[:version_index] + [forced or lines[version_index]]
        body = lines[version_index + 1:]
        first_line = version_index + 2

    return "\n".join(header + [LINE_DIRECTIVE_EXTENSION, f'#line {first_line} "{source_name}"'] + body) + "\n"


def _vulkan_env_name(env_version: int) -> str:
    major = env_version >> 22
    minor = (env_version >> 12) & 0x3ff
    return f"vulkan{major}.{minor}"


class GlslangTranslator(ShaderTranslator):
    """
    Translates GLSL/HLSL by running the `glslangValidator` executable.

    Includes are expanded in Python before the source is piped to the
    validator, so resolution always goes through the registered callback.
    """
    def __init__(self, executable: str = GLSLANG_VALIDATOR):
        self.executable = executable
        self._default_limits = None

    @classmethod
    def create(cls, executable: str = None):
        """Returns a translator, or None if the validator is not on PATH."""
        path = shutil.which(executable or GLSLANG_VALIDATOR)
        if path is None:
            return None
        return cls(path)

    def build_args(self, kind, entry_point_name: str, options: CompileOptions, output: Path) -> list:
        args = [self.executable]
        if options.target_env in (TargetEnv.OPENGL, TargetEnv.OPENGL_COMPAT):
            args.append('-G')
        else:
            args.append('-V')
            if options.target_env == TargetEnv.VULKAN and options.env_version is not None:
                args += ['--target-env', _vulkan_env_name(int(options.env_version))]
        if options.target_spirv is not None:
            args += ['--target-env', f"spirv{options.target_spirv.value}"]

        if options.source_language == SourceLanguage.HLSL:
            args.append('-D')
        for name, value in options.macros.items():
            args.append(f"-D{name}" if value is None else f"-D{name}={value}")

        if options.debug_info:
            args.append('-g')
        if options.optimization_level == OptimizationLevel.SIZE:
            args.append('-Os')
        elif options.optimization_level == OptimizationLevel.ZERO:
            args.append('-Od')

        if options.auto_bind_uniforms:
            args.append('--auto-map-bindings')
        for (stage, resource), base in options.binding_bases.items():
            args.append(f"--shift-{resource.value}-binding")
            if stage is not None:
                args.append(stage.value)
            args.append(str(base))

        if options.hlsl_io_mapping:
            args.append('--hlsl-iomap')
        if options.hlsl_offsets:
            args.append('--hlsl-offsets')
        for register, set_, binding in options.hlsl_register_bindings:
            args += ['--resource-set-binding', register, set_, binding]

        if options.suppress_warnings:
            args.append('-w')

        args += ['-S', kind.value, '-e', entry_point_name, '--stdin', '-o', str(output)]
        return args

    def resource_limits(self, limits: dict) -> str:
        """Returns the validator's default resource config with `limits` applied."""
        if self._default_limits is None:
            result = subprocess.run([self.executable, '-c'], capture_output=True, text=True)
            self._default_limits = result.stdout

        overrides = {limit.value: value for limit, value in limits.items()}
        lines = []
        for line in self._default_limits.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[0] in overrides:
                line = f"{parts[0]} {overrides.pop(parts[0])}"
            lines.append(line)
        lines.extend(f"{key} {value}" for key, value in overrides.items())
        return "\n".join(lines) + "\n"

    def compile_into_spirv(self, source_text, kind, input_file_name, entry_point_name, options=None):
        options = options or CompileOptions()
        prepared = prepare_source(source_text, input_file_name, options)

        with tempfile.TemporaryDirectory(prefix='spvforge-') as workdir:
            output = Path(workdir) / 'out.spv'
            args = self.build_args(kind, entry_point_name, options, output)
            if options.limits:
                config = Path(workdir) / 'limits.conf'
                config.write_text(self.resource_limits(options.limits))
                args.append(str(config))

            try:
                result = subprocess.run(args, input=prepared, capture_output=True, text=True)
            except OSError as e:
                raise TranslatorError(f"could not run {self.executable}: {e}") from e

            log = "\n".join(
                line for line in (result.stdout + result.stderr).splitlines()
                if line.strip() and line.strip() != 'stdin'
            )
            if result.returncode != 0 or not output.exists():
                raise TranslatorError(log or f"{self.executable} exited with status {result.returncode}")

            warnings = [line for line in log.splitlines() if line.startswith('WARNING:')]
            if warnings and options.warnings_as_errors:
                raise TranslatorError(log)

            return CompilationArtifact(read_words(output), len(warnings), "\n".join(warnings))
