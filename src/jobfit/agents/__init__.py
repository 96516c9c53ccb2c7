# agents package
"""Matching stages: hard gate, soft scoring, gap analysis, actions."""

from jobfit.agents.hard_gate import HardGateEvaluator
from jobfit.agents.soft_scorer import SoftScorer
from jobfit.agents.gap_analyzer import GapAnalyzer
from jobfit.agents.action_generator import ActionGenerator

__all__ = [
    "HardGateEvaluator",
    "SoftScorer",
    "GapAnalyzer",
    "ActionGenerator",
]
