from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UploadedFile:
    """A file handed over by the browser, already read into memory."""

    name: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class Entity:
    text: str
    entity_type: str
    confidence: float

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Entity":
        return cls(
            text=str(data.get("text") or ""),
            entity_type=str(data.get("type") or ""),
            confidence=float(data.get("confidence") or 0.0),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"text": self.text, "type": self.entity_type, "confidence": self.confidence}


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse the backend's ``analyzedAt`` value.

    Parameters
    ----------
    raw:
        Either an ISO-8601 string or the ``[year, month, day, hour,
        minute, second, nanos]`` array that Java date serializers emit
        when timestamps are not written as text.

    Returns
    -------
    datetime or None
        None when the value is missing or cannot be understood.

    Examples
    --------
    >>> parse_timestamp("2026-01-02T03:04:05")
    datetime.datetime(2026, 1, 2, 3, 4, 5)
    >>> parse_timestamp([2026, 1, 2, 3, 4, 5, 600000000])
    datetime.datetime(2026, 1, 2, 3, 4, 5, 600000)
    >>> parse_timestamp([2026, 13, 1]) is None
    True
    >>> parse_timestamp(None) is None
    True
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (list, tuple)):
        try:
            parts = [int(p) for p in raw]
            if len(parts) < 3:
                return None
            parts += [0] * (7 - len(parts))
            year, month, day, hour, minute, second, nanos = parts[:7]
            return datetime(year, month, day, hour, minute, second, nanos // 1000)
        except (TypeError, ValueError):
            return None
    text = str(raw).strip()
    # fromisoformat() only learned the "Z" suffix in 3.11
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Java emits up to nanosecond precision; datetime keeps microseconds.
    text = re.sub(r"(\.\d{6})\d+", r"\1", text)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class AnalysisResult:
    """Analysis payload returned by the backend for one document."""

    filename: str
    file_type: str
    file_size: int
    analyzed_at: Optional[datetime]
    word_count: int
    character_count: int
    reading_time: str
    id: Optional[str] = None
    summary: Optional[str] = None
    extracted_text: Optional[str] = None
    sentiment: Optional[str] = None
    sentiment_score: Optional[float] = None
    key_phrases: List[str] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """Build a result from the backend's camelCase JSON object."""
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object for an analysis, got {type(data).__name__}")

        score = data.get("sentimentScore")
        doc_id = data.get("id")
        return cls(
            id=str(doc_id) if doc_id is not None else None,
            filename=str(data.get("filename") or ""),
            file_type=str(data.get("fileType") or ""),
            file_size=int(data.get("fileSize") or 0),
            analyzed_at=parse_timestamp(data.get("analyzedAt")),
            word_count=int(data.get("wordCount") or 0),
            character_count=int(data.get("characterCount") or 0),
            reading_time=str(data.get("readingTime") or ""),
            summary=data.get("summary") or None,
            extracted_text=data.get("extractedText") or None,
            sentiment=data.get("sentiment") or None,
            sentiment_score=float(score) if score is not None else None,
            key_phrases=[str(p) for p in (data.get("keyPhrases") or [])],
            entities=[Entity.from_payload(e) for e in (data.get("entities") or [])],
        )

    def to_payload(self) -> Dict[str, Any]:
        """Inverse of ``from_payload``: the backend's camelCase field names."""
        return {
            "id": self.id,
            "filename": self.filename,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "analyzedAt": self.analyzed_at.isoformat() if self.analyzed_at else None,
            "wordCount": self.word_count,
            "characterCount": self.character_count,
            "readingTime": self.reading_time,
            "summary": self.summary,
            "extractedText": self.extracted_text,
            "sentiment": self.sentiment,
            "sentimentScore": self.sentiment_score,
            "keyPhrases": list(self.key_phrases),
            "entities": [e.to_payload() for e in self.entities],
        }
