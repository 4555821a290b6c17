from .context import AnalysisSession

__all__ = ["AnalysisSession"]
