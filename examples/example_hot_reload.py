import sys
import time
from pathlib import Path
from spvforge import CompilerBuilder, ShaderKind, ShaderWatcher

SHADERS = Path(__file__).parent / 'shaders'

def main():
    """
    Recompiles `shaders/scene.frag` whenever it is saved.

    Edit the shader while this runs; press Ctrl+C to stop.
    """
    compiler = CompilerBuilder().with_include_dir(SHADERS / 'lib').build()
    if compiler is None:
        print("ERROR: glslangValidator was not found on PATH.", file=sys.stderr)
        return

    source = SHADERS / 'scene.frag'
    compiler.compile_from_file(source, ShaderKind.FRAGMENT, True)

    watcher = ShaderWatcher(
        compiler,
        on_change=lambda path, words: print(f"INFO: {path.name} reloaded ({len(words)} words)"),
    )
    watcher.watch(source, ShaderKind.FRAGMENT)
    watcher.start()
    try:
        while True:
            watcher.process_pending()
            time.sleep(0.25)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()

if __name__ == "__main__":
    main()
