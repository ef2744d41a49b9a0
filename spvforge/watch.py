import sys
import threading
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .errors import CompilerError


class _ShaderChangeHandler(FileSystemEventHandler):
    def __init__(self, watcher):
        self.watcher = watcher

    def on_modified(self, event):
        if not event.is_directory:
            self.watcher.mark_changed(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self.watcher.mark_changed(event.src_path)


class ShaderWatcher:
    """
    Recompiles watched shader files when they change on disk.

    Filesystem events only mark files as pending; the actual recompile runs
    in `process_pending()`, on the thread that owns the Compiler. Call it
    from your frame or event loop.
    """
    def __init__(self, compiler, on_change=None):
        """
        Args:
            compiler (Compiler): The compiler whose in-memory entries are refreshed.
            on_change (callable, optional): Called as ``on_change(path, words)``
                after each successful reload.
        """
        self.compiler = compiler
        self.on_change = on_change
        self.shaders = {}
        self.observer = None
        self._pending = set()
        self._lock = threading.Lock()

    def watch(self, path, kind):
        self.shaders[Path(path).resolve()] = kind

    def mark_changed(self, path):
        path = Path(path).resolve()
        if path not in self.shaders:
            return
        with self._lock:
            self._pending.add(path)

    def start(self):
        self.observer = Observer()
        handler = _ShaderChangeHandler(self)
        for directory in sorted({path.parent for path in self.shaders}):
            self.observer.schedule(handler, str(directory), recursive=False)
        self.observer.daemon = True
        self.observer.start()
        print(f"INFO: Watching {len(self.shaders)} shader(s) for changes...", file=sys.stderr)

    def stop(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def process_pending(self) -> list:
        """
        Recompiles every shader changed since the last call.

        A failed reload prints an error and keeps the previous result.

        Returns:
            list[Path]: The shaders that were reloaded successfully.
        """
        with self._lock:
            pending, self._pending = self._pending, set()

        reloaded = []
        for path in sorted(pending):
            print(f"INFO: Change detected in '{path.name}'. Recompiling...", file=sys.stderr)
            try:
                words = self.compiler.compile_from_file(path, self.shaders[path], False)
            except CompilerError as e:
                print(f"ERROR: Failed to recompile '{path.name}': {e}", file=sys.stderr)
                continue
            reloaded.append(path)
            if self.on_change:
                self.on_change(path, words)
        return reloaded
