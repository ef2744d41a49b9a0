import pytest
from spvforge import (
    IncludeType, SearchPaths, resolve_include, IncludeDepthError, IncludeNotFoundError,
    MAX_INCLUDE_DEPTH
)

@pytest.fixture
def layout(tmp_path):
    """shaders/main.vert next to shaders/common.glsl, plus two library dirs."""
    (tmp_path / "shaders").mkdir()
    (tmp_path / "lib_a").mkdir()
    (tmp_path / "lib_b").mkdir()
    (tmp_path / "shaders" / "main.vert").write_text('#include "common.glsl"\n')
    (tmp_path / "shaders" / "common.glsl").write_text("// local\n")
    (tmp_path / "lib_a" / "common.glsl").write_text("// lib_a\n")
    (tmp_path / "lib_b" / "common.glsl").write_text("// lib_b\n")
    (tmp_path / "lib_b" / "only_b.glsl").write_text("// only_b\n")
    return tmp_path

def test_relative_include_prefers_colocated_file(layout):
    paths = SearchPaths([layout / "lib_a", layout / "lib_b"])
    requesting = str(layout / "shaders" / "main.vert")
    resolved = resolve_include(paths, "common.glsl", IncludeType.RELATIVE, requesting, 1)
    assert resolved.content == "// local\n"
    assert resolved.resolved_name == str(layout / "shaders" / "common.glsl")

def test_relative_include_falls_back_to_search_paths(layout):
    paths = SearchPaths([layout / "lib_a", layout / "lib_b"])
    requesting = str(layout / "shaders" / "main.vert")
    resolved = resolve_include(paths, "only_b.glsl", IncludeType.RELATIVE, requesting, 1)
    assert resolved.content == "// only_b\n"

def test_standard_include_ignores_colocated_file(layout):
    paths = SearchPaths([layout / "lib_a", layout / "lib_b"])
    requesting = str(layout / "shaders" / "main.vert")
    resolved = resolve_include(paths, "common.glsl", IncludeType.STANDARD, requesting, 1)
    assert resolved.content == "// lib_a\n"

def test_search_paths_are_consulted_in_configured_order(layout):
    requesting = str(layout / "shaders" / "main.vert")
    forward = SearchPaths([layout / "lib_a", layout / "lib_b"])
    backward = SearchPaths([layout / "lib_b", layout / "lib_a"])
    for _ in range(3):
        assert resolve_include(forward, "common.glsl", IncludeType.STANDARD, requesting, 1).content == "// lib_a\n"
        assert resolve_include(backward, "common.glsl", IncludeType.STANDARD, requesting, 1).content == "// lib_b\n"

def test_later_search_path_used_when_earlier_misses(layout):
    paths = SearchPaths([layout / "lib_a", layout / "lib_b"])
    resolved = resolve_include(paths, "only_b.glsl", IncludeType.STANDARD, "memory", 1)
    assert resolved.resolved_name == str(layout / "lib_b" / "only_b.glsl")

def test_unopenable_candidate_is_skipped(layout):
    (layout / "lib_a" / "only_b.glsl").mkdir()
    paths = SearchPaths([layout / "lib_a", layout / "lib_b"])
    resolved = resolve_include(paths, "only_b.glsl", IncludeType.STANDARD, "memory", 1)
    assert resolved.content == "// only_b\n"

@pytest.mark.parametrize("include_type", [IncludeType.STANDARD, IncludeType.RELATIVE])
def test_depth_limit_applies_even_when_file_exists(layout, include_type):
    paths = SearchPaths([layout / "lib_a"])
    requesting = str(layout / "shaders" / "main.vert")
    with pytest.raises(IncludeDepthError) as excinfo:
        resolve_include(paths, "common.glsl", include_type, requesting, MAX_INCLUDE_DEPTH)
    assert excinfo.value.depth == 32
    assert "32" in str(excinfo.value)

def test_depth_just_below_limit_resolves(layout):
    paths = SearchPaths([layout / "lib_a"])
    resolved = resolve_include(paths, "common.glsl", IncludeType.STANDARD, "memory", MAX_INCLUDE_DEPTH - 1)
    assert resolved.content == "// lib_a\n"

def test_not_found_reports_requested_name(layout):
    paths = SearchPaths([layout / "lib_a"])
    requesting = str(layout / "shaders" / "main.vert")
    with pytest.raises(IncludeNotFoundError) as excinfo:
        resolve_include(paths, "missing.glsl", IncludeType.RELATIVE, requesting, 1)
    assert excinfo.value.requested_name == "missing.glsl"
    assert str(excinfo.value) == "Could not find file: missing.glsl"

def test_not_found_without_search_paths(layout):
    with pytest.raises(IncludeNotFoundError):
        resolve_include(SearchPaths(), "common.glsl", IncludeType.STANDARD, "memory", 1)

def test_content_is_reread_on_every_call(layout):
    paths = SearchPaths([layout / "lib_a"])
    first = resolve_include(paths, "common.glsl", IncludeType.STANDARD, "memory", 1)
    (layout / "lib_a" / "common.glsl").write_text("// changed\n")
    second = resolve_include(paths, "common.glsl", IncludeType.STANDARD, "memory", 1)
    assert first.content == "// lib_a\n"
    assert second.content == "// changed\n"

def test_search_paths_add_and_snapshot(tmp_path):
    paths = SearchPaths()
    paths.add(tmp_path / "one")
    paths.add(tmp_path / "two")
    assert paths.snapshot() == [tmp_path / "one", tmp_path / "two"]
    assert len(paths) == 2
    with paths.locked() as directories:
        assert directories == (tmp_path / "one", tmp_path / "two")
    # The lock is released again after the block.
    paths.add(tmp_path / "three")
    assert len(paths) == 3

def test_concurrent_lookups_while_paths_are_added(layout):
    import threading
    from concurrent.futures import ThreadPoolExecutor

    paths = SearchPaths([layout / "lib_a"])
    requesting = str(layout / "shaders" / "main.vert")
    done = threading.Event()

    def add_paths():
        for i in range(200):
            paths.add(layout / f"extra_{i}")
        paths.add(layout / "lib_b")
        done.set()

    def lookup(_):
        standard = resolve_include(paths, "common.glsl", IncludeType.STANDARD, requesting, 1)
        relative = resolve_include(paths, "common.glsl", IncludeType.RELATIVE, requesting, 1)
        return standard.content, relative.content

    with ThreadPoolExecutor(max_workers=8) as pool:
        writer = pool.submit(add_paths)
        results = list(pool.map(lookup, range(400)))
        writer.result()

    assert done.is_set()
    assert set(results) == {("// lib_a\n", "// local\n")}
    assert len(paths) == 202
    # The directory added last is reachable once the writer has finished.
    assert resolve_include(paths, "only_b.glsl", IncludeType.STANDARD, requesting, 1).content == "// only_b\n"
