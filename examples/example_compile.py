import sys
from pathlib import Path
from spvforge import CompilerBuilder, ShaderKind, CompilerError, TargetEnv, EnvVersion

SHADERS = Path(__file__).parent / 'shaders'

def main():
    """
    Compiles `shaders/scene.frag` twice.

    This example shows how to:
    - Configure include directories for `#include <...>` lookups.
    - Compile with caching, which writes `scene.frag.spv` next to the source.
    - Hit the in-memory cache on the second call.
    """
    compiler = (
        CompilerBuilder()
        .with_target_env(TargetEnv.VULKAN, EnvVersion.VULKAN_1_2)
        .with_include_dir(SHADERS / 'lib')
        .build()
    )
    if compiler is None:
        print("ERROR: glslangValidator was not found on PATH.", file=sys.stderr)
        return None

    source = SHADERS / 'scene.frag'
    try:
        words = compiler.compile_from_file(source, ShaderKind.FRAGMENT, True)
    except CompilerError as e:
        print(e, file=sys.stderr)
        return None

    print(f"INFO: {source.name} -> {len(words)} words")
    cached = compiler.compile_from_file(source, ShaderKind.FRAGMENT, True)
    print(f"INFO: second compile served from cache: {cached is words}")
    return words

if __name__ == "__main__":
    main()
