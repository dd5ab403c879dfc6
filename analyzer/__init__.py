# Analyzer package - conversion killer engine
from .extractors import PageSignals, extract_signals, summarize_page
from .rules import RULE_CATALOG, Rule, evaluate_rules
from .selection import Selection, select_top_defects
from .composer import compose_result, exempt_result
from .backends import Findings, HeuristicBackend, LLMBackend, ScoringBackend, get_scoring_backend
from .pipeline import AnalysisPipeline

__all__ = [
    "PageSignals",
    "extract_signals",
    "summarize_page",
    "RULE_CATALOG",
    "Rule",
    "evaluate_rules",
    "Selection",
    "select_top_defects",
    "compose_result",
    "exempt_result",
    "Findings",
    "HeuristicBackend",
    "LLMBackend",
    "ScoringBackend",
    "get_scoring_backend",
    "AnalysisPipeline",
]
