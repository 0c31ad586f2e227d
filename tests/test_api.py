"""Tests for API functionality."""

import tempfile
from pathlib import Path

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from markdown_ld import __version__  # noqa: E402
from markdown_ld.adapters.fs_index import DirectoryIndex  # noqa: E402
from markdown_ld.api.app import create_app, generate_token  # noqa: E402
from markdown_ld.config import MarkdownLDConfig  # noqa: E402
from markdown_ld.runtime import Runtime  # noqa: E402

EXAMPLE = "# Title\n\nSee [other](other.md) and [ext](https://x.com).\n- [x] done\n- [ ] todo\n"


class BrokenIndex:
    root = Path(".")

    def resolve(self, target):
        raise RuntimeError("index offline")


@pytest.fixture
def runtime():
    """Create a runtime with a small document directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "docs"
        root.mkdir()
        (root / "other.md").write_text("# Other\n")
        (root / "me.md").write_text("[other](other.md)\n")

        yield Runtime(config=MarkdownLDConfig(), index=DirectoryIndex(root))


@pytest.fixture
def client(runtime):
    return TestClient(create_app(runtime, token=None))


def test_health_endpoint(client):
    """Test /health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__


def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    client = TestClient(create_app(runtime, token=token))

    response = client.get("/health")
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_parse(client):
    """POST /parse returns the full record."""
    response = client.post("/parse", json={"text": EXAMPLE})
    assert response.status_code == 200
    data = response.json()
    assert data["headings"][0]["slug"] == "title"
    assert [t["checked"] for t in data["tasks"]] == [True, False]
    assert data["reading_time_minutes"] == 1


def test_parse_resolves_backlinks(client):
    """Internal links resolve against the runtime index."""
    response = client.post("/parse", json={"text": EXAMPLE, "document_id": "me"})
    (edge,) = response.json()["backlinks"]
    assert edge["source"] == "me"
    assert edge["target"] == "other"


def test_parse_raw(client):
    """POST /parse/raw takes the document as the body."""
    response = client.post("/parse/raw", content=EXAMPLE.encode("utf-8"))
    assert response.status_code == 200
    assert len(response.json()["links"]) == 2


def test_parse_raw_invalid_encoding(client):
    """Undecodable bodies are a client error."""
    response = client.post("/parse/raw", content=b"\xff\xfe\xfa")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_encoding"


def test_processing_error_is_server_error():
    """A failing index is reported as a processing error."""
    runtime = Runtime(config=MarkdownLDConfig(), index=BrokenIndex())  # type: ignore[arg-type]
    client = TestClient(create_app(runtime))
    response = client.post("/parse", json={"text": "[a](x.md)\n"})
    assert response.status_code == 500
    assert response.json()["error"] == "processing_error"


def test_links_and_headings(client):
    """Partial endpoints return lists."""
    links = client.post("/links", json={"text": EXAMPLE}).json()
    assert [l["kind"] for l in links] == ["internal", "external"]

    headings = client.post("/headings", json={"text": "# A\n# A\n"}).json()
    assert [h["slug"] for h in headings] == ["a", "a-2"]


def test_lint(client):
    """POST /lint returns findings."""
    findings = client.post("/lint", json={"text": "[a]() [b](gone.md)\n"}).json()
    assert [f["severity"] for f in findings] == ["error", "error"]


def test_backlinks(client):
    """GET /backlinks lists incoming edges."""
    response = client.get("/backlinks", params={"id": "other"})
    assert response.status_code == 200
    (edge,) = response.json()
    assert edge["source"] == "me"


def test_backlinks_without_index():
    """Backlinks need an index."""
    client = TestClient(create_app(Runtime(config=MarkdownLDConfig())))
    assert client.get("/backlinks", params={"id": "x"}).status_code == 400
    assert client.get("/health").json()["index"] is None
