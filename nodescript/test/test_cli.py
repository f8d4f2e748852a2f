import json

import pytest

from nodescript.compile_from_json import main
from nodescript.test.builders import snapshot_dict

HELLO = '# Generated by nodescript (python)\n\nprint("hi")\n'


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LANGUAGE", "DEBUG_INFO", "STRICT", "MAX_PATH_LENGTH", "LOG_LEVEL"):
        monkeypatch.delenv(f"NODESCRIPT_{name}", raising=False)


@pytest.fixture
def graph_file(tmp_path):
    path = tmp_path / "tiny.json"
    path.write_text(json.dumps(snapshot_dict()), encoding="utf-8")
    return path


class TestCompileFromJson:

    def test_print(self, graph_file, capsys):
        assert main([str(graph_file), "--print"]) == 0
        captured = capsys.readouterr()
        assert captured.out == HELLO
        assert "[compile_from_json] graph    : tiny" in captured.err

    def test_writes_beside_input(self, graph_file):
        assert main([str(graph_file)]) == 0
        assert (graph_file.parent / "tiny.py").read_text(encoding="utf-8") == HELLO

    def test_out_option(self, graph_file, tmp_path):
        out = tmp_path / "build" / "hello.py"
        assert main([str(graph_file), "--out", str(out)]) == 0
        assert out.read_text(encoding="utf-8") == HELLO

    def test_debug_info(self, graph_file, capsys):
        assert main([str(graph_file), "--print", "--debug-info"]) == 0
        assert "# node 1: Print" in capsys.readouterr().out

    def test_language_from_environment(self, graph_file, capsys, monkeypatch):
        monkeypatch.setenv("NODESCRIPT_LANGUAGE", "lua")
        # The snapshot only carries python templates
        assert main([str(graph_file), "--print"]) == 1
        assert "no implementation for language 'lua'" in capsys.readouterr().err

    def test_timings(self, graph_file, capsys):
        assert main([str(graph_file), "--print", "--timings"]) == 0
        err = capsys.readouterr().err
        for stage in ("Index-Build", "Control-Traversal", "Dependency-Resolution", "Code-Generation"):
            assert stage in err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.json")]) == 1
        assert "[error] File not found" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "[error] Invalid JSON" in capsys.readouterr().err

    def test_schema_error(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"nodes": []}), encoding="utf-8")
        assert main([str(path)]) == 1
        assert "[error] Schema validation failed" in capsys.readouterr().err

    def test_unknown_language(self, graph_file, capsys):
        assert main([str(graph_file), "--language", "cobol"]) == 1
        assert "Unknown target language 'cobol'" in capsys.readouterr().err

    def test_strict(self, tmp_path, capsys):
        data = snapshot_dict()
        data["connections"].append({"variant": "data", "from": [9, 0], "to": [1, 1]})
        path = tmp_path / "dangling.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        assert main([str(path), "--print"]) == 0
        capsys.readouterr()
        assert main([str(path), "--print", "--strict"]) == 1
        assert "[error] Compilation failed" in capsys.readouterr().err
