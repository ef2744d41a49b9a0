import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from .errors import IncludeDepthError, IncludeNotFoundError
from .options import IncludeType

MAX_INCLUDE_DEPTH = 32


@dataclass(frozen=True)
class ResolvedInclude:
    resolved_name: str
    content: str


class SearchPaths:
    """
    Ordered list of library directories used for include lookups.

    The translator may call the include resolver from its own threads, so
    every access goes through a lock. Directories added first shadow those
    added later.
    """
    def __init__(self, paths=()):
        self._lock = threading.Lock()
        self._paths = [Path(p) for p in paths]

    def add(self, path):
        with self._lock:
            self._paths.append(Path(path))

    @contextmanager
    def locked(self):
        """Holds the lock and yields a read-only view of the directories."""
        with self._lock:
            yield tuple(self._paths)

    def snapshot(self) -> list:
        with self._lock:
            return list(self._paths)

    def __len__(self):
        with self._lock:
            return len(self._paths)

    def __repr__(self):
        return f"SearchPaths({[str(p) for p in self.snapshot()]!r})"


def _try_read(path: Path):
    """Returns the file's text, or None if it cannot be opened or read."""
    if not path.is_file():
        return None
    try:
        with open(path, 'r') as f:
            return f.read()
    except (OSError, UnicodeDecodeError):
        return None


def _search(directories, requested: Path):
    for directory in directories:
        candidate = directory / requested
        content = _try_read(candidate)
        if content is not None:
            return ResolvedInclude(str(candidate.absolute()), content)
    return None


def resolve_include(search_paths: SearchPaths, requested_name: str, include_type: IncludeType,
                    requesting_source: str, depth: int) -> ResolvedInclude:
    """
    Resolves one include directive to a file on disk.

    Quoted (relative) includes look next to the requesting source first and
    then fall back to the search paths. Angle-bracket (standard) includes only
    consult the search paths. The depth cap stands in for cycle detection: a
    self-including header fails once the chain reaches MAX_INCLUDE_DEPTH.

    Args:
        search_paths (SearchPaths): Library directories, in priority order.
        requested_name (str): The name written inside the directive.
        include_type (IncludeType): STANDARD for `<...>`, RELATIVE for `"..."`.
        requesting_source (str): Path of the file containing the directive.
        depth (int): Nesting depth of this directive, 1 for the root source.

    Raises:
        IncludeDepthError: If `depth` is MAX_INCLUDE_DEPTH or more.
        IncludeNotFoundError: If no readable candidate exists.
    """
    if depth >= MAX_INCLUDE_DEPTH:
        raise IncludeDepthError(depth)

    requested = Path(requested_name)
    with search_paths.locked() as directories:
        if include_type == IncludeType.RELATIVE:
            candidate = Path(requesting_source).parent / requested
            content = _try_read(candidate)
            if content is not None:
                return ResolvedInclude(str(candidate.absolute()), content)

        resolved = _search(directories, requested)
        if resolved is not None:
            return resolved

    raise IncludeNotFoundError(requested_name)
