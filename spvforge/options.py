from enum import Enum, IntEnum


class ShaderKind(Enum):
    """Pipeline stage of a shader. Values are the glslang stage names."""
    VERTEX = 'vert'
    FRAGMENT = 'frag'
    COMPUTE = 'comp'
    GEOMETRY = 'geom'
    TESS_CONTROL = 'tesc'
    TESS_EVALUATION = 'tese'
    RAYGEN = 'rgen'
    ANY_HIT = 'rahit'
    CLOSEST_HIT = 'rchit'
    MISS = 'rmiss'
    INTERSECTION = 'rint'
    CALLABLE = 'rcall'
    TASK = 'task'
    MESH = 'mesh'


class IncludeType(Enum):
    """`#include <file>` is STANDARD, `#include "file"` is RELATIVE."""
    STANDARD = 'standard'
    RELATIVE = 'relative'


class TargetEnv(Enum):
    VULKAN = 'vulkan'
    OPENGL = 'opengl'
    OPENGL_COMPAT = 'opengl_compat'


class EnvVersion(IntEnum):
    VULKAN_1_0 = 1 << 22
    VULKAN_1_1 = (1 << 22) | (1 << 12)
    VULKAN_1_2 = (1 << 22) | (2 << 12)
    VULKAN_1_3 = (1 << 22) | (3 << 12)
    OPENGL_4_5 = 450


class SpirvVersion(Enum):
    V1_0 = '1.0'
    V1_1 = '1.1'
    V1_2 = '1.2'
    V1_3 = '1.3'
    V1_4 = '1.4'
    V1_5 = '1.5'
    V1_6 = '1.6'


class OptimizationLevel(Enum):
    ZERO = 'zero'
    SIZE = 'size'
    PERFORMANCE = 'performance'


class ResourceKind(Enum):
    """Resource classes that can have their binding numbers shifted."""
    IMAGE = 'image'
    SAMPLER = 'sampler'
    TEXTURE = 'texture'
    BUFFER = 'ubo'
    STORAGE_BUFFER = 'ssbo'
    UNORDERED_ACCESS_VIEW = 'uav'


class GlslProfile(Enum):
    NONE = ''
    CORE = 'core'
    COMPATIBILITY = 'compatibility'
    ES = 'es'


class SourceLanguage(Enum):
    GLSL = 'glsl'
    HLSL = 'hlsl'


class Limit(Enum):
    """Resource limits, named as in a glslang resource configuration file."""
    MAX_LIGHTS = 'MaxLights'
    MAX_CLIP_PLANES = 'MaxClipPlanes'
    MAX_TEXTURE_UNITS = 'MaxTextureUnits'
    MAX_TEXTURE_COORDS = 'MaxTextureCoords'
    MAX_VERTEX_ATTRIBS = 'MaxVertexAttribs'
    MAX_VERTEX_UNIFORM_COMPONENTS = 'MaxVertexUniformComponents'
    MAX_VARYING_FLOATS = 'MaxVaryingFloats'
    MAX_VERTEX_TEXTURE_IMAGE_UNITS = 'MaxVertexTextureImageUnits'
    MAX_COMBINED_TEXTURE_IMAGE_UNITS = 'MaxCombinedTextureImageUnits'
    MAX_TEXTURE_IMAGE_UNITS = 'MaxTextureImageUnits'
    MAX_FRAGMENT_UNIFORM_COMPONENTS = 'MaxFragmentUniformComponents'
    MAX_DRAW_BUFFERS = 'MaxDrawBuffers'
    MAX_VERTEX_UNIFORM_VECTORS = 'MaxVertexUniformVectors'
    MAX_VARYING_VECTORS = 'MaxVaryingVectors'
    MAX_FRAGMENT_UNIFORM_VECTORS = 'MaxFragmentUniformVectors'
    MAX_COMPUTE_WORK_GROUP_COUNT_X = 'MaxComputeWorkGroupCountX'
    MAX_COMPUTE_WORK_GROUP_SIZE_X = 'MaxComputeWorkGroupSizeX'
    MAX_COMPUTE_UNIFORM_COMPONENTS = 'MaxComputeUniformComponents'
    MAX_COMPUTE_IMAGE_UNIFORMS = 'MaxComputeImageUniforms'
    MAX_COMBINED_IMAGE_UNIFORMS = 'MaxCombinedImageUniforms'
    MAX_SAMPLES = 'MaxSamples'


class CompileOptions:
    """
    Pass-through settings handed to a ShaderTranslator on every compile.

    Nothing here is interpreted by the compiler itself, with the exception of
    the include callback, which the translator invokes once per `#include`
    directive it encounters.
    """
    def __init__(self):
        self.target_env = None
        self.env_version = None
        self.target_spirv = None
        self.macros = {}
        self.auto_bind_uniforms = False
        self.binding_bases = {}
        self.debug_info = False
        self.forced_version_profile = None
        self.hlsl_io_mapping = False
        self.hlsl_offsets = False
        self.hlsl_register_bindings = []
        self.source_language = SourceLanguage.GLSL
        self.optimization_level = None
        self.suppress_warnings = False
        self.warnings_as_errors = False
        self.limits = {}
        self.include_callback = None

    def set_target_env(self, env: TargetEnv, version: int):
        self.target_env = env
        self.env_version = version

    def set_target_spirv(self, version: SpirvVersion):
        self.target_spirv = version

    def add_macro_definition(self, name: str, value: str = None):
        self.macros[name] = value

    def set_auto_bind_uniforms(self, auto_bind: bool):
        self.auto_bind_uniforms = auto_bind

    def set_binding_base(self, kind: ResourceKind, base: int):
        """Sets the binding base of a resource kind for every stage."""
        self.binding_bases[(None, kind)] = base

    def set_binding_base_for_stage(self, stage: ShaderKind, kind: ResourceKind, base: int):
        self.binding_bases[(stage, kind)] = base

    def set_generate_debug_info(self):
        self.debug_info = True

    def set_forced_version_profile(self, version: int, profile: GlslProfile):
        self.forced_version_profile = (version, profile)

    def set_hlsl_io_mapping(self, iomap: bool):
        self.hlsl_io_mapping = iomap

    def set_hlsl_offsets(self, offsets: bool):
        self.hlsl_offsets = offsets

    def set_hlsl_register_set_and_binding(self, register: str, set: str, binding: str):
        self.hlsl_register_bindings.append((register, set, binding))

    def set_source_language(self, lang: SourceLanguage):
        self.source_language = lang

    def set_optimization_level(self, level: OptimizationLevel):
        self.optimization_level = level

    def set_suppress_warnings(self):
        self.suppress_warnings = True

    def set_warnings_as_errors(self):
        self.warnings_as_errors = True

    def set_limit(self, limit: Limit, value: int):
        self.limits[limit] = value

    def set_include_callback(self, callback):
        """
        Registers the include resolver.

        Args:
            callback: Called as ``callback(requested_name, include_type,
                requesting_source, depth)``. Returns a ResolvedInclude or
                raises IncludeError.
        """
        self.include_callback = callback
