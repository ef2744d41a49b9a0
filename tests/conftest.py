import pytest
import zlib
from spvforge import CompilerBuilder, ShaderTranslator, CompilationArtifact, TranslatorError
from spvforge.translator import expand_includes

SPIRV_MAGIC = 0x07230203


class CountingTranslator(ShaderTranslator):
    """
    Stand-in for glslangValidator. Expands includes through the registered
    callback and emits a word stream derived from the expanded source.
    Sources containing `#error` are rejected.
    """
    def __init__(self, warnings=()):
        self.calls = []
        self.warnings = list(warnings)

    def compile_into_spirv(self, source_text, kind, input_file_name, entry_point_name, options):
        self.calls.append((input_file_name, kind, entry_point_name))
        expanded = expand_includes(source_text, input_file_name, options.include_callback)
        if "#error" in expanded:
            raise TranslatorError(f"ERROR: {input_file_name}:1: '#error' : shader rejected")
        words = [SPIRV_MAGIC, 0x00010000, len(options.macros), zlib.crc32(expanded.encode()), len(expanded)]
        return CompilationArtifact(words, len(self.warnings), "\n".join(self.warnings))


@pytest.fixture
def make_translator():
    return CountingTranslator

@pytest.fixture
def translator():
    return CountingTranslator()


@pytest.fixture
def compiler(translator):
    return CompilerBuilder().with_translator(translator).build()


@pytest.fixture
def write_shader(tmp_path):
    """Writes a file under tmp_path and returns its path."""
    def _writer(rel_path, content="#version 450\nvoid main(){}\n"):
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
    return _writer

