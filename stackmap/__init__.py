"""stackmap: static structure analysis for JavaScript/TypeScript projects."""

from .models import AnalysisReport, AnalysisResult
from .orchestrator import ReportComposer

__all__ = ["AnalysisReport", "AnalysisResult", "ReportComposer"]
