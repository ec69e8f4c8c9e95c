"""Static prompt text for narrative enrichment."""

from __future__ import annotations

SYSTEM_PROMPT = (
    "You are an expert software architect and code analyst specializing in JavaScript/Node.js projects.\n\n"
    "Your task is to perform deep semantic analysis of codebases and provide actionable insights about:\n"
    "- Project architecture and design patterns\n"
    "- Component relationships and data flow\n"
    "- API structure and endpoints\n"
    "- Security vulnerabilities and best practices\n"
    "- Performance optimization opportunities\n"
    "- Code quality and maintainability issues\n\n"
    "Always respond with valid JSON only, following the exact schema provided."
)

REACT_QUESTIONS: tuple[str, ...] = (
    "Component composition and reusability",
    "State management patterns (useState, useContext, Redux, Zustand)",
    "Effect dependencies and cleanup",
    "Performance optimization opportunities (useMemo, useCallback, React.memo)",
    "Accessibility compliance",
    "Bundle size optimization",
)

NODE_QUESTIONS: tuple[str, ...] = (
    "Route organization and middleware usage",
    "Database connection patterns and query optimization",
    "Error handling and logging strategies",
    "Security middleware and validation",
    "API design and RESTful principles",
    "Authentication and authorization patterns",
)

ANALYSIS_TEMPLATE = "analysis.j2"

__all__ = ["ANALYSIS_TEMPLATE", "NODE_QUESTIONS", "REACT_QUESTIONS", "SYSTEM_PROMPT"]
