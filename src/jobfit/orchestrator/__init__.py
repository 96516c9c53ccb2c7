# orchestrator package
"""Orchestrator running the matching stages into a single report."""

from jobfit.orchestrator.matching_orchestrator import (
    MatchOrchestrator,
    build_one_line_summary,
    match_profile_to_job,
    recommend,
)

__all__ = [
    "MatchOrchestrator",
    "build_one_line_summary",
    "match_profile_to_job",
    "recommend",
]
