"""Smart Document Analyzer: web frontend.

A single-page app that lets a user drop or pick a document (PDF, DOCX or
TXT), forwards it to the independently running analysis backend and
shows what came back: file information, word and character counts,
reading time, summary, sentiment, key phrases, entities and a preview of
the extracted text.

Each browser gets a small server-side session holding the page state:

- a root container (current analysis + loading flag),
- the upload component (validation and the submit lifecycle),
- the result component (renders the analysis panel).

The page's JavaScript only forwards browser events (file picked, file
dropped, reset, show more/less) and swaps in the HTML fragments returned
by the server.

Run with ``document-analyzer`` or ``python -m document_analyzer.app``
and point it at the backend with ``DOCUMENT_API_URL``.
"""

from __future__ import annotations

import html
import json
import logging
import os
import secrets
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse

from document_analyzer.api_client import API_BASE_URL, DocumentApiClient
from document_analyzer.errors import ApiError, UploadInProgress
from document_analyzer.models import AnalysisResult
from document_analyzer.result_view import ResultView, render_result
from document_analyzer.state import RootState
from document_analyzer.upload import ALLOWED_CONTENT_TYPES, MAX_FILE_SIZE_BYTES, UploadComponent, read_upload


# -----------------------------
# Configuration (simple + explicit)
# -----------------------------

HOST = os.environ.get("FRONTEND_HOST", "0.0.0.0")
PORT = int(os.environ.get("FRONTEND_PORT", "7860"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
MAX_SESSIONS = int(os.environ.get("MAX_SESSIONS", "256"))

SESSION_COOKIE = "analyzer_session"

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


# -----------------------------
# Per-browser sessions
# -----------------------------

@dataclass
class Session:
    root: RootState
    upload: UploadComponent
    result: ResultView

    @classmethod
    def create(cls, client: DocumentApiClient) -> "Session":
        root = RootState()
        upload = UploadComponent(
            client,
            on_upload_start=root.handle_upload_start,
            on_analysis_complete=root.handle_analysis_complete,
        )
        return cls(root=root, upload=upload, result=ResultView(root))

    def fragments(self) -> Dict[str, Any]:
        return {
            "error": self.upload.state.error,
            "loading": self.root.loading,
            "upload_html": self.upload.render(reset_disabled=self.root.loading),
            "result_html": self.result.render(),
        }


class SessionStore:
    """In-memory sessions keyed by cookie value, least recently used evicted first.

    Notes
    -----
    Sessions live as long as the process. An evicted session's upload
    component is closed, so an upload still in flight for it finishes
    without touching any state.
    """

    def __init__(self, client: DocumentApiClient, max_sessions: int = MAX_SESSIONS) -> None:
        self._client = client
        self._max_sessions = max_sessions
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get_or_create(self, session_id: Optional[str]) -> Tuple[str, Session]:
        if session_id and session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return session_id, self._sessions[session_id]

        session_id = secrets.token_urlsafe(16)
        session = Session.create(self._client)
        self._sessions[session_id] = session
        while len(self._sessions) > self._max_sessions:
            old_id, old = self._sessions.popitem(last=False)
            old.upload.close()
            logger.info("Evicted session %s", old_id[:6])
        return session_id, session


def _remember(response: HTMLResponse | JSONResponse, session_id: str) -> None:
    response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")


# -----------------------------
# App factory
# -----------------------------

def create_app(api_client: Optional[DocumentApiClient] = None, max_sessions: int = MAX_SESSIONS) -> FastAPI:
    """Build the frontend app.

    Parameters
    ----------
    api_client:
        Client for the analysis backend. Defaults to one configured from
        ``DOCUMENT_API_URL``.
    max_sessions:
        How many browser sessions to keep in memory.
    """
    client = api_client or DocumentApiClient()
    sessions = SessionStore(client, max_sessions=max_sessions)

    app = FastAPI(title="Smart Document Analyzer")
    app.state.sessions = sessions

    def session_for(request: Request) -> Tuple[str, Session]:
        return sessions.get_or_create(request.cookies.get(SESSION_COOKIE))

    def fragments_response(session_id: str, session: Session, status_code: int = 200, **extra: Any) -> JSONResponse:
        content = session.fragments()
        content.update(extra)
        response = JSONResponse(status_code=status_code, content=content)
        _remember(response, session_id)
        return response

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request) -> HTMLResponse:
        """Render the single-page UI."""
        session_id, session = session_for(request)
        response = HTMLResponse(render_page(session, client.base_url))
        _remember(response, session_id)
        return response

    @app.get("/fragments")
    async def fragments(request: Request) -> JSONResponse:
        """Current upload and result panels, e.g. after a failed fetch in the browser."""
        session_id, session = session_for(request)
        return fragments_response(session_id, session)

    @app.post("/upload")
    async def upload(
        request: Request,
        file: List[UploadFile] = File(...),
        source: str = Form("picker"),
    ) -> JSONResponse:
        """Validate the first uploaded file and send it to the backend."""
        session_id, session = session_for(request)

        # Only the first file of a multi-select or drop is ever processed.
        uploaded = await read_upload(file[0])

        handle = session.upload.drop if source == "drop" else session.upload.select
        try:
            await handle([uploaded])
        except UploadInProgress as ex:
            return fragments_response(session_id, session, status_code=409, error=str(ex))
        return fragments_response(session_id, session)

    @app.post("/reset")
    async def reset(request: Request) -> JSONResponse:
        session_id, session = session_for(request)
        if session.root.loading:
            return fragments_response(session_id, session, status_code=409, error=str(UploadInProgress()))
        session.root.handle_reset()
        return fragments_response(session_id, session)

    @app.post("/toggle-text")
    async def toggle_text(request: Request) -> JSONResponse:
        session_id, session = session_for(request)
        session.result.toggle_full_text()
        return fragments_response(session_id, session)

    # -----------------------------
    # JSON proxies for the rest of the backend API
    # -----------------------------

    @app.get("/api/health")
    async def api_health():
        try:
            return await client.health_check()
        except ApiError as ex:
            return JSONResponse(status_code=502, content={"error": str(ex)})

    @app.get("/api/analyses")
    async def api_analyses():
        try:
            results: List[AnalysisResult] = await client.get_all_analyses()
        except ApiError as ex:
            return JSONResponse(status_code=502, content={"error": str(ex)})
        return [result.to_payload() for result in results]

    @app.get("/api/analyses/{document_id}")
    async def api_analysis(document_id: str):
        try:
            result = await client.get_analysis(document_id)
        except ApiError as ex:
            return JSONResponse(status_code=502, content={"error": str(ex)})
        return result.to_payload()

    return app


# -----------------------------
# Web UI (single-file HTML with inline CSS + vanilla JS)
# -----------------------------

def render_page(session: Session, api_base_url: str) -> str:
    upload_html = session.upload.render(reset_disabled=session.root.loading)
    result_html = session.result.render()
    loading_html = render_result(None, loading=True)
    allowed_types = json.dumps(list(ALLOWED_CONTENT_TYPES))
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>Smart Document Analyzer</title>
  <style>
    :root {{
      --accent: #4f46e5;
      --bg: #f6f7fb;
      --fg: #111111;
      --muted: #666666;
      --border: #e5e5e5;
      --ok: #0a7a2f;
      --bad: #b00020;
      --card: #ffffff;
    }}
    body {{
      margin: 0;
      font-family: system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif;
      background: var(--bg);
      color: var(--fg);
      line-height: 1.35;
    }}
    header {{
      background: var(--accent);
      color: white;
      padding: 14px 18px;
    }}
    header h1 {{ margin: 0; font-size: 20px; }}
    header .sub {{ margin-top: 6px; font-size: 13px; opacity: 0.9; }}
    main {{ max-width: 1100px; margin: 18px auto; padding: 0 16px 40px 16px; }}
    footer {{ text-align: center; color: var(--muted); font-size: 12px; padding-bottom: 20px; }}
    .grid {{ display: grid; grid-template-columns: 1fr 1fr; gap: 14px; }}
    @media (max-width: 920px) {{
      .grid {{ grid-template-columns: 1fr; }}
    }}
    .card {{
      border: 1px solid var(--border);
      background: var(--card);
      border-radius: 10px;
      padding: 14px;
    }}
    .card h2 {{ margin: 0 0 10px 0; font-size: 16px; }}
    .card h3 {{ font-size: 14px; margin: 14px 0 8px 0; }}
    .card h4 {{ font-size: 13px; margin: 10px 0 6px 0; }}
    .meta {{ font-size: 12px; color: var(--muted); }}
    .row {{ display: flex; gap: 10px; align-items: center; flex-wrap: wrap; margin-top: 10px; }}
    .btn {{
      background: var(--accent);
      color: white;
      border: none;
      border-radius: 8px;
      padding: 10px 12px;
      font-weight: 600;
      cursor: pointer;
    }}
    .btn.secondary {{ background: #222; }}
    button:disabled {{ opacity: 0.6; cursor: not-allowed; }}
    .pill {{
      display: inline-block;
      padding: 4px 8px;
      border-radius: 999px;
      background: rgba(255,255,255,0.92);
      color: #111111;
      font-size: 12px;
    }}
    .upload-area {{
      border: 2px dashed var(--border);
      border-radius: 10px;
      padding: 28px 14px;
      text-align: center;
      background: white;
    }}
    .upload-area.drag-active {{ border-color: var(--accent); background: #eef0ff; }}
    .upload-area.loading {{ opacity: 0.8; }}
    .upload-icon, .empty-icon {{ font-size: 32px; }}
    .upload-button {{
      background: none;
      border: none;
      color: var(--accent);
      font-weight: 650;
      text-decoration: underline;
      cursor: pointer;
      padding: 0;
    }}
    .file-info {{ font-size: 12px; color: var(--muted); }}
    .spinner {{
      width: 28px;
      height: 28px;
      margin: 0 auto 8px auto;
      border: 3px solid var(--border);
      border-top-color: var(--accent);
      border-radius: 50%;
      animation: spin 0.9s linear infinite;
    }}
    @keyframes spin {{ to {{ transform: rotate(360deg); }} }}
    .error-message {{
      margin-top: 10px;
      padding: 10px;
      border-radius: 8px;
      background: #fdecee;
      color: var(--bad);
      white-space: pre-wrap;
    }}
    .loading-skeleton {{
      height: 22px;
      margin: 10px 0;
      border-radius: 6px;
      background: linear-gradient(90deg, #eee, #f8f8f8, #eee);
      background-size: 200% 100%;
      animation: shimmer 1.2s infinite;
    }}
    @keyframes shimmer {{ to {{ background-position: -200% 0; }} }}
    .empty-state {{ text-align: center; color: var(--muted); padding: 30px 0; }}
    .info-grid, .metrics-grid, .entities-grid {{
      display: grid;
      grid-template-columns: repeat(2, minmax(0, 1fr));
      gap: 8px;
    }}
    .metrics-grid {{ grid-template-columns: repeat(3, minmax(0, 1fr)); }}
    .info-label, .metric-label, .entity-type {{ font-size: 11px; color: var(--muted); }}
    .metric-card, .entity-item {{
      border: 1px solid var(--border);
      border-radius: 10px;
      padding: 10px;
    }}
    .metric-number {{ font-size: 18px; font-weight: 750; }}
    .sentiment-positive {{ color: var(--ok); font-weight: 700; }}
    .sentiment-negative {{ color: var(--bad); font-weight: 700; }}
    .key-phrase-tag {{
      display: inline-block;
      margin: 0 6px 6px 0;
      padding: 4px 8px;
      border-radius: 999px;
      background: #eef0ff;
      font-size: 12px;
    }}
    .entity-confidence {{ font-size: 12px; font-weight: 650; }}
    .text-preview {{
      white-space: pre-wrap;
      word-break: break-word;
      background: #fafafa;
      border: 1px solid var(--border);
      border-radius: 10px;
      padding: 10px;
      max-height: 320px;
      overflow: auto;
      font-size: 12.5px;
    }}
    .text-preview.expanded {{ max-height: none; }}
    .toggle-text-btn {{
      margin-top: 8px;
      background: none;
      border: 1px solid var(--border);
      border-radius: 8px;
      padding: 6px 10px;
      cursor: pointer;
    }}
  </style>
</head>
<body>
  <header>
    <h1>🧠 Smart Document Analyzer</h1>
    <div class="sub">
      Upload your documents and get instant AI-powered insights.
      Backend: <span class="pill">{html.escape(api_base_url)}</span>
      <span class="pill">Status: <b id="healthStatus">checking...</b></span>
    </div>
  </header>

  <main>
    <div class="grid">
      <section class="card" id="uploadPanel">{upload_html}</section>
      <section class="card" id="resultPanel">{result_html}</section>
    </div>
  </main>

  <footer>Built with FastAPI + httpx</footer>

  <template id="loadingTemplate">{loading_html}</template>

<script>
(function() {{
  const uploadPanel = document.getElementById("uploadPanel");
  const resultPanel = document.getElementById("resultPanel");
  const loadingTemplate = document.getElementById("loadingTemplate");
  const allowedTypes = {allowed_types};
  const maxBytes = {MAX_FILE_SIZE_BYTES};
  let busy = false;

  function dropZone() {{
    return uploadPanel.querySelector('[data-role="drop-zone"]');
  }}

  function applyFragments(data) {{
    if (typeof data.upload_html === "string") uploadPanel.innerHTML = data.upload_html;
    if (typeof data.result_html === "string") resultPanel.innerHTML = data.result_html;
  }}

  function showError(msg) {{
    let box = uploadPanel.querySelector(".error-message");
    if (!box) {{
      box = document.createElement("div");
      box.className = "error-message";
      uploadPanel.appendChild(box);
    }}
    box.textContent = "⚠️ " + msg;
  }}

  async function post(url, body) {{
    const r = await fetch(url, {{ method: "POST", body: body }});
    let data;
    try {{
      data = await r.json();
    }} catch (e) {{
      data = {{ error: "HTTP " + r.status }};
    }}
    applyFragments(data);
    if (!r.ok && data.error) showError(data.error);
    return data;
  }}

  async function refresh() {{
    try {{
      const r = await fetch("/fragments");
      applyFragments(await r.json());
    }} catch (e) {{
      // Keep whatever is on screen.
    }}
  }}

  function setControlsDisabled(disabled) {{
    uploadPanel.querySelectorAll("button, input").forEach(function(el) {{
      el.disabled = disabled;
    }});
  }}

  async function submitFiles(files, source) {{
    if (busy || !files || !files[0]) return;
    busy = true;
    const fd = new FormData();
    fd.append("file", files[0], files[0].name);
    fd.append("source", source);

    setControlsDisabled(true);
    // The server validates again; only files it will send on get the skeleton.
    if (allowedTypes.includes(files[0].type) && files[0].size <= maxBytes) {{
      resultPanel.innerHTML = loadingTemplate.innerHTML;
    }}
    try {{
      await post("/upload", fd);
    }} catch (e) {{
      await refresh();
      showError("Unexpected frontend error: " + String(e));
    }} finally {{
      busy = false;
    }}
  }}

  ["dragenter", "dragover"].forEach(function(type) {{
    uploadPanel.addEventListener(type, function(e) {{
      e.preventDefault();
      e.stopPropagation();
      const zone = dropZone();
      if (zone && !busy) zone.classList.add("drag-active");
    }});
  }});

  uploadPanel.addEventListener("dragleave", function(e) {{
    e.preventDefault();
    e.stopPropagation();
    const zone = dropZone();
    if (zone) zone.classList.remove("drag-active");
  }});

  uploadPanel.addEventListener("drop", function(e) {{
    e.preventDefault();
    e.stopPropagation();
    const zone = dropZone();
    if (zone) zone.classList.remove("drag-active");
    if (e.dataTransfer && e.dataTransfer.files && e.dataTransfer.files[0]) {{
      submitFiles(e.dataTransfer.files, "drop");
    }}
  }});

  uploadPanel.addEventListener("change", function(e) {{
    if (e.target.matches('[data-role="file-input"]') && e.target.files && e.target.files[0]) {{
      submitFiles(e.target.files, "picker");
    }}
  }});

  uploadPanel.addEventListener("click", function(e) {{
    const el = e.target.closest("[data-action]");
    if (!el || el.disabled) return;
    if (el.dataset.action === "browse") {{
      uploadPanel.querySelector('[data-role="file-input"]').click();
    }} else if (el.dataset.action === "reset") {{
      post("/reset").catch(refresh);
    }}
  }});

  resultPanel.addEventListener("click", function(e) {{
    const el = e.target.closest('[data-action="toggle-text"]');
    if (el) post("/toggle-text").catch(refresh);
  }});

  async function checkHealth() {{
    const out = document.getElementById("healthStatus");
    try {{
      const r = await fetch("/api/health");
      const data = await r.json();
      out.textContent = r.ok ? (data.status || "UP") : "unreachable";
      out.title = data.error || data.service || "";
    }} catch (e) {{
      out.textContent = "unreachable";
    }}
  }}

  checkHealth();
}})();
</script>
</body>
</html>
"""


app = create_app()


def main() -> None:
    import uvicorn

    logger.info("Serving on http://%s:%d, backend at %s", HOST, PORT, API_BASE_URL)
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
