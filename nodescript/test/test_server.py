import pytest
from fastapi.testclient import TestClient

from nodescript.server.main import app
from nodescript.test.builders import snapshot_dict


@pytest.fixture
def client():
    return TestClient(app)


class TestServer:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_languages(self, client):
        response = client.get("/api/languages")
        assert response.status_code == 200
        assert response.json() == ["lua", "python"]

    def test_compile(self, client):
        response = client.post("/api/compile", json={"graph": snapshot_dict(), "language": "python"})
        assert response.status_code == 200

        body = response.json()
        assert body["graph_name"] == "tiny"
        assert body["code"] == '# Generated by nodescript (python)\n\nprint("hi")\n'
        assert [t["stage"] for t in body["elapsed_times"]] == [
            "Index-Build", "Control-Traversal", "Dependency-Resolution", "Code-Generation",
        ]
        assert "timestamp" in body

    def test_compile_debug_info(self, client):
        response = client.post("/api/compile", json={"graph": snapshot_dict(), "debug_info": True})
        assert response.status_code == 200
        assert "# node 1: Print" in response.json()["code"]

    def test_extra_library(self, client):
        graph = snapshot_dict()
        start = graph.pop("library")[0]
        response = client.post("/api/compile", json={"graph": graph, "library": [start], "language": "python"})
        assert response.status_code == 200

    def test_schema_error(self, client):
        response = client.post("/api/compile", json={"graph": {"nodes": []}})
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Schema validation failed")

    def test_compile_error(self, client):
        response = client.post("/api/compile", json={"graph": snapshot_dict(), "language": "lua"})
        assert response.status_code == 400
        assert "no implementation for language 'lua'" in response.json()["detail"]

    def test_unknown_language(self, client):
        response = client.post("/api/compile", json={"graph": snapshot_dict(), "language": "cobol"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Compilation failed: Unknown target language 'cobol'"
