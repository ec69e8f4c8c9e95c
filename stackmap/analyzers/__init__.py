"""Analysis stages of the stackmap pipeline."""

from .graph import GraphBuilder
from .issues import IssueDetector
from .project import detect_tech_stack, determine_project_type, recommend_commands, summarize_project
from .source_parser import SourceParser
from .workflow import WorkflowClassifier

__all__ = [
    "GraphBuilder",
    "IssueDetector",
    "SourceParser",
    "WorkflowClassifier",
    "detect_tech_stack",
    "determine_project_type",
    "recommend_commands",
    "summarize_project",
]
