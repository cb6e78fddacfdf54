from __future__ import annotations

import logging
from typing import Optional

from document_analyzer.models import AnalysisResult

logger = logging.getLogger(__name__)


class RootState:
    """Cross-component state: the current analysis and the loading flag.

    Children never assign these fields; they call the three handlers the
    container hands them. ``analysis_version`` increases every time a new
    analysis subject is stored so views can scope their local state to it.
    """

    def __init__(self) -> None:
        self._analysis: Optional[AnalysisResult] = None
        self._loading = False
        self._analysis_version = 0

    @property
    def analysis(self) -> Optional[AnalysisResult]:
        return self._analysis

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def analysis_version(self) -> int:
        return self._analysis_version

    def handle_upload_start(self) -> None:
        self._loading = True
        self._analysis = None

    def handle_analysis_complete(self, result: Optional[AnalysisResult]) -> None:
        self._analysis = result
        self._loading = False
        self._analysis_version += 1
        if result is not None:
            logger.info("Analysis stored for %s (%d words)", result.filename, result.word_count)

    def handle_reset(self) -> None:
        self._analysis = None
        self._loading = False
        self._analysis_version += 1
