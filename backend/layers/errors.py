from __future__ import annotations


class LayoutError(Exception):
    """Base error for the layout backend."""


class ProjectionError(LayoutError, ValueError):
    """The projector cannot map a degenerate rectangle or surface."""


class SourceError(LayoutError):
    """An upstream provider failed after all retries."""


class AnalysisNotFound(LayoutError, KeyError):
    def __init__(self, analysis_id: str):
        super().__init__(analysis_id)
        self.analysis_id = analysis_id

    def __str__(self) -> str:
        return f"Analysis not found: {self.analysis_id}"
