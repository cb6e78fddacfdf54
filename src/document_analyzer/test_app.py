from __future__ import annotations

from typing import List

import httpx
import pytest
from fastapi.testclient import TestClient

from document_analyzer import upload as upload_module
from document_analyzer.api_client import DocumentApiClient
from document_analyzer.app import SESSION_COOKIE, SessionStore, create_app

PDF = "application/pdf"


class Backend:
    """Scripted analysis backend behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.analyses: List[dict] = []
        self.upload_response = httpx.Response(
            200,
            json={
                "id": "doc-1",
                "filename": "big.pdf",
                "fileType": "pdf",
                "fileSize": 2 * 1024 * 1024,
                "analyzedAt": "2026-03-01T10:15:30",
                "wordCount": 120,
                "characterCount": 640,
                "readingTime": "1 min",
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/documents/upload":
            return self.upload_response
        if path == "/api/documents/health":
            return httpx.Response(200, json={"status": "UP", "service": "Smart Document Analyzer API"})
        if path == "/api/documents/all":
            return httpx.Response(200, json=self.analyses)
        if path == "/api/documents/doc-1/analysis":
            return httpx.Response(200, json=self.upload_response.json())
        return httpx.Response(404, json={"error": "Analysis not found"})


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
def client(backend: Backend) -> TestClient:
    api = DocumentApiClient(base_url="http://backend.test/api", transport=httpx.MockTransport(backend))
    return TestClient(create_app(api_client=api))


def upload(client: TestClient, name: str, content_type: str, content: bytes, source: str = "picker"):
    return client.post("/upload", files={"file": (name, content, content_type)}, data={"source": source})


# -----------------------------
# Page
# -----------------------------
def test_index_renders_empty_state_and_sets_session_cookie(client: TestClient):
    r = client.get("/")

    assert r.status_code == 200
    assert "Smart Document Analyzer" in r.text
    assert "Upload a document to see analysis results here" in r.text
    assert "http://backend.test/api" in r.text
    assert SESSION_COOKIE in r.cookies


def test_index_mirrors_upload_rules_for_the_loading_skeleton(client: TestClient):
    page = client.get("/").text

    assert "const maxBytes = 52428800;" in page
    assert '"application/vnd.openxmlformats-officedocument.wordprocessingml.document"' in page
    assert "allowedTypes.includes(files[0].type) && files[0].size <= maxBytes" in page


# -----------------------------
# Upload flow
# -----------------------------
def test_end_to_end_pdf_upload(client: TestClient, backend: Backend):
    client.get("/")

    r = upload(client, "big.pdf", PDF, b"%PDF" + b"0" * (2 * 1024 * 1024 - 4))

    assert r.status_code == 200
    data = r.json()
    assert data["error"] is None
    assert data["loading"] is False
    assert [req.url.path for req in backend.requests] == ["/api/documents/upload"]
    assert ">120<" in data["result_html"]
    assert "2 MB" in data["result_html"]
    assert "Summary" not in data["result_html"]
    assert "Sentiment" not in data["result_html"]

    # state is kept for the session
    page = client.get("/").text
    assert "big.pdf" in page


def test_invalid_type_is_rejected_without_backend_call(client: TestClient, backend: Backend):
    r = upload(client, "photo.png", "image/png", b"\x89PNG")

    assert r.status_code == 200
    assert r.json()["error"] == "Please upload a PDF, TXT, or DOCX file."
    assert "Please upload a PDF, TXT, or DOCX file." in r.json()["upload_html"]
    assert backend.requests == []


def test_oversized_upload_is_rejected_without_backend_call(client: TestClient, backend: Backend, monkeypatch):
    monkeypatch.setattr(upload_module, "MAX_FILE_SIZE_BYTES", 1024)

    r = upload(client, "big.pdf", PDF, b"%PDF" + b"0" * 4092)

    assert r.status_code == 200
    assert r.json()["error"] == "File size must be less than 50MB."
    assert r.json()["loading"] is False
    assert backend.requests == []


def test_backend_error_message_is_shown(client: TestClient, backend: Backend):
    backend.upload_response = httpx.Response(400, json={"error": "bad format"})

    r = upload(client, "notes.txt", "text/plain", b"hello", source="drop")

    data = r.json()
    assert data["error"] == "bad format"
    assert data["loading"] is False
    assert "Upload a document to see analysis results here" in data["result_html"]


def test_reset_clears_analysis(client: TestClient):
    upload(client, "big.pdf", PDF, b"%PDF-1.7")

    r = client.post("/reset")

    assert r.status_code == 200
    assert "Upload a document to see analysis results here" in r.json()["result_html"]


def test_toggle_text_expands_long_extracted_text(client: TestClient, backend: Backend):
    body = dict(backend.upload_response.json(), extractedText="w" * 700)
    backend.upload_response = httpx.Response(200, json=body)
    upload(client, "big.pdf", PDF, b"%PDF-1.7")

    r = client.post("/toggle-text")
    assert "w" * 700 in r.json()["result_html"]
    assert "Show Less" in r.json()["result_html"]

    r = client.post("/toggle-text")
    assert "w" * 700 not in r.json()["result_html"]


def test_fragments_reflect_session_state(client: TestClient):
    upload(client, "big.pdf", PDF, b"%PDF-1.7")

    r = client.get("/fragments")

    assert "big.pdf" in r.json()["result_html"]


# -----------------------------
# JSON proxies
# -----------------------------
def test_health_proxy(client: TestClient):
    r = client.get("/api/health")

    assert r.status_code == 200
    assert r.json()["status"] == "UP"


def test_analysis_proxy_maps_backend_error_to_502(client: TestClient):
    r = client.get("/api/analyses/missing")

    assert r.status_code == 502
    assert r.json() == {"error": "Analysis not found"}


def test_list_proxy(client: TestClient):
    r = client.get("/api/analyses")

    assert r.status_code == 200
    assert r.json() == []


def test_proxies_keep_backend_field_names(client: TestClient, backend: Backend):
    stored = dict(
        backend.upload_response.json(),
        sentimentScore=0.9,
        keyPhrases=["revenue"],
        entities=[{"text": "Acme", "type": "ORGANIZATION", "confidence": 0.8}],
    )
    backend.analyses = [stored]

    listed = client.get("/api/analyses").json()
    one = client.get("/api/analyses/doc-1").json()

    assert len(listed) == 1
    item = listed[0]
    assert item["fileType"] == "pdf"
    assert item["wordCount"] == 120
    assert item["analyzedAt"] == "2026-03-01T10:15:30"
    assert item["sentimentScore"] == 0.9
    assert item["keyPhrases"] == ["revenue"]
    assert item["entities"] == [{"text": "Acme", "type": "ORGANIZATION", "confidence": 0.8}]
    assert "file_type" not in item and "word_count" not in item
    assert one["id"] == "doc-1"
    assert one["characterCount"] == 640
    assert one["readingTime"] == "1 min"


def test_unreachable_backend_reported_by_health_proxy():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    api = DocumentApiClient(base_url="http://backend.test/api", transport=httpx.MockTransport(handler))
    r = TestClient(create_app(api_client=api)).get("/api/health")

    assert r.status_code == 502
    assert r.json()["error"].startswith("No response from server")


# -----------------------------
# Sessions
# -----------------------------
def test_session_store_evicts_least_recently_used():
    store = SessionStore(DocumentApiClient(base_url="http://backend.test/api"), max_sessions=2)

    first_id, first = store.get_or_create(None)
    second_id, _ = store.get_or_create(None)
    assert store.get_or_create(first_id)[1] is first  # touch: first is now most recent
    third_id, _ = store.get_or_create(None)

    assert len(store) == 2
    assert second_id not in store
    assert first_id in store and third_id in store


def test_unknown_cookie_gets_fresh_session():
    store = SessionStore(DocumentApiClient(base_url="http://backend.test/api"))

    sid, _ = store.get_or_create("stale-cookie")

    assert sid != "stale-cookie"
    assert sid in store
