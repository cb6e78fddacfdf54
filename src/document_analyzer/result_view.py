"""Result component: renders the analysis panel.

The view is a pure function of ``(analysis, loading)`` plus one bit of
local state, whether the extracted text is expanded. That bit belongs to
a single analysis subject: when the root container stores a new
analysis, the text starts collapsed again.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import List, Optional

from document_analyzer.models import AnalysisResult
from document_analyzer.state import RootState

TEXT_PREVIEW_CHARS = 500
SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


# -----------------------------
# Formatting helpers
# -----------------------------

def format_file_size(num_bytes: int) -> str:
    """Human-readable size with binary prefixes.

    Examples
    --------
    >>> format_file_size(0)
    '0 Bytes'
    >>> format_file_size(1024)
    '1 KB'
    >>> format_file_size(1048576)
    '1 MB'
    >>> format_file_size(1500000)
    '1.43 MB'
    """
    if num_bytes <= 0:
        return "0 Bytes"
    # Integer bucketing, equivalent to floor(log1024(n)) without float drift.
    i = 0
    while num_bytes >= 1024 ** (i + 1) and i < len(SIZE_UNITS) - 1:
        i += 1
    value = f"{num_bytes / 1024 ** i:.2f}".rstrip("0").rstrip(".")
    return f"{value} {SIZE_UNITS[i]}"


def format_count(n: int) -> str:
    """
    >>> format_count(1234567)
    '1,234,567'
    """
    return f"{n:,}"


def format_timestamp(ts: Optional[datetime]) -> str:
    if ts is None:
        return "—"
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.strftime("%Y-%m-%d %H:%M:%S")


def format_percent(fraction: float, decimals: int) -> str:
    """
    >>> format_percent(0.8734, 1)
    '87.3%'
    >>> format_percent(0.876, 0)
    '88%'
    """
    value = fraction * 100
    if decimals == 0:
        # Round half up like the browser's toFixed(0) on typical scores.
        return f"{int(value + 0.5)}%"
    return f"{value:.{decimals}f}%"


def needs_text_toggle(text: str) -> bool:
    return len(text) > TEXT_PREVIEW_CHARS


def preview_text(text: str, expanded: bool) -> str:
    """Text as shown in the extracted-text block.

    Examples
    --------
    >>> preview_text("short", expanded=False)
    'short'
    >>> len(preview_text("x" * 600, expanded=False))
    503
    >>> preview_text("x" * 600, expanded=True) == "x" * 600
    True
    """
    if expanded or not needs_text_toggle(text):
        return text
    return text[:TEXT_PREVIEW_CHARS] + "..."


# -----------------------------
# Sections
# -----------------------------

def _esc(value: object) -> str:
    return html.escape(str(value))


def _info_item(label: str, value: str) -> str:
    return (
        '<div class="info-item">'
        f'<span class="info-label">{label}:</span> '
        f'<span class="info-value">{_esc(value)}</span>'
        "</div>"
    )


def _metric(value: str, label: str) -> str:
    return (
        '<div class="metric-card">'
        f'<div class="metric-number">{_esc(value)}</div>'
        f'<div class="metric-label">{label}</div>'
        "</div>"
    )


def _file_info_section(a: AnalysisResult) -> str:
    return (
        '<div class="file-info-section">'
        "<h3>📝 File Information</h3>"
        '<div class="info-grid">'
        + _info_item("Filename", a.filename)
        + _info_item("Type", a.file_type.upper())
        + _info_item("Size", format_file_size(a.file_size))
        + _info_item("Analyzed", format_timestamp(a.analyzed_at))
        + "</div></div>"
    )


def _metrics_section(a: AnalysisResult) -> str:
    return (
        '<div class="metrics-section">'
        "<h3>📈 Content Metrics</h3>"
        '<div class="metrics-grid">'
        + _metric(format_count(a.word_count), "Words")
        + _metric(format_count(a.character_count), "Characters")
        + _metric(a.reading_time, "Reading Time")
        + "</div></div>"
    )


def _summary_section(a: AnalysisResult) -> str:
    if not a.summary:
        return ""
    return (
        '<div class="summary-section">'
        "<h3>📋 Summary</h3>"
        f'<div class="summary-content">{_esc(a.summary)}</div>'
        "</div>"
    )


def _sentiment_section(a: AnalysisResult) -> str:
    if not a.sentiment:
        return ""
    score = ""
    if a.sentiment_score is not None:
        score = (
            '<div class="sentiment-score">Confidence Score: '
            f'<span class="score-value">{format_percent(a.sentiment_score, 1)}</span></div>'
        )
    css = "sentiment-" + "".join(c for c in a.sentiment.lower() if c.isalnum() or c == "-")
    return (
        '<div class="sentiment-section">'
        "<h4>😊 Sentiment Analysis</h4>"
        '<div class="sentiment-result">'
        '<div class="sentiment-label">Overall Sentiment: '
        f'<span class="sentiment-value {css}">{_esc(a.sentiment)}</span></div>'
        f"{score}"
        "</div></div>"
    )


def _key_phrases_section(a: AnalysisResult) -> str:
    if not a.key_phrases:
        return ""
    tags = "".join(f'<span class="key-phrase-tag">{_esc(p)}</span>' for p in a.key_phrases)
    return (
        '<div class="key-phrases-section">'
        "<h4>🔑 Key Phrases</h4>"
        f'<div class="key-phrases">{tags}</div>'
        "</div>"
    )


def _entities_section(a: AnalysisResult) -> str:
    if not a.entities:
        return ""
    items = "".join(
        '<div class="entity-item">'
        f'<div class="entity-text">{_esc(e.text)}</div>'
        f'<div class="entity-type">{_esc(e.entity_type)}</div>'
        f'<div class="entity-confidence">{format_percent(e.confidence, 0)}</div>'
        "</div>"
        for e in a.entities
    )
    return (
        '<div class="entities-section">'
        "<h4>🏷️ Detected Entities</h4>"
        f'<div class="entities-grid">{items}</div>'
        "</div>"
    )


def _ai_section(a: AnalysisResult) -> str:
    body = _sentiment_section(a) + _key_phrases_section(a) + _entities_section(a)
    if not body:
        return ""
    return f'<div class="ai-analysis-section"><h3>🤖 AI Analysis</h3>{body}</div>'


def _text_section(a: AnalysisResult, expanded: bool) -> str:
    text = a.extracted_text
    if not text:
        return ""
    toggle = ""
    if needs_text_toggle(text):
        label = "🔼 Show Less" if expanded else "🔽 Show More"
        toggle = f'<button type="button" class="toggle-text-btn" data-action="toggle-text">{label}</button>'
    expanded_css = " expanded" if expanded else ""
    return (
        '<div class="text-section">'
        "<h3>📄 Extracted Text</h3>"
        '<div class="text-content">'
        f'<pre class="text-preview{expanded_css}">{_esc(preview_text(text, expanded))}</pre>'
        f"{toggle}"
        "</div></div>"
    )


# -----------------------------
# Public rendering
# -----------------------------

def render_result(analysis: Optional[AnalysisResult], loading: bool, show_full_text: bool = False) -> str:
    """Render the results card body.

    Loading takes precedence over any stale analysis, then the empty
    state, then the full breakdown.
    """
    parts: List[str] = ["<h2>📊 Analysis Results</h2>"]
    if loading:
        parts.append(
            '<div class="loading-placeholder">'
            + '<div class="loading-skeleton"></div>' * 3
            + "</div>"
        )
    elif analysis is None:
        parts.append(
            '<div class="empty-state">'
            '<div class="empty-icon">📋</div>'
            "<p>Upload a document to see analysis results here</p>"
            "</div>"
        )
    else:
        parts += [
            _file_info_section(analysis),
            _metrics_section(analysis),
            _summary_section(analysis),
            _ai_section(analysis),
            _text_section(analysis, show_full_text),
        ]
    return "".join(parts)


class ResultView:
    """Result component bound to a root container."""

    def __init__(self, root: RootState) -> None:
        self._root = root
        self._expanded_version: Optional[int] = None

    @property
    def show_full_text(self) -> bool:
        return self._expanded_version == self._root.analysis_version

    def toggle_full_text(self) -> None:
        analysis = self._root.analysis
        if analysis is None or not analysis.extracted_text:
            return
        if self.show_full_text:
            self._expanded_version = None
        else:
            self._expanded_version = self._root.analysis_version

    def render(self) -> str:
        return render_result(self._root.analysis, self._root.loading, self.show_full_text)
