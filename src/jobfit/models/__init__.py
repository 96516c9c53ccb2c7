# models package
"""Data models for the matching pipeline."""

from jobfit.models.skill import Skill, SkillLevel
from jobfit.models.candidate import CandidateProfile, Experience, Project
from jobfit.models.job import (
    HardRequirement,
    JobRequirements,
    RequirementType,
    SoftRequirement,
    SoftWeight,
)
from jobfit.models.rules import (
    ImplicationRule,
    ImplicationRuleSet,
    LLMFallbackSettings,
    RuleSettings,
    merge_rule_sets,
)
from jobfit.models.match_result import (
    ActionSuggestion,
    GapAnalysis,
    GapItem,
    GateEvidence,
    GateStatus,
    HardGateItem,
    HardGateResult,
    InterviewFocus,
    LearningPlan,
    LearningTask,
    MatchLevel,
    MatchReport,
    OverallGateStatus,
    OverallScore,
    Recommendation,
    ReportMeta,
    ReportSummary,
    ResumeEdit,
    ScoreDetail,
    ScoreItem,
    SoftScoreResult,
    StrengthItem,
)

__all__ = [
    "Skill",
    "SkillLevel",
    "CandidateProfile",
    "Experience",
    "Project",
    "HardRequirement",
    "JobRequirements",
    "RequirementType",
    "SoftRequirement",
    "SoftWeight",
    "ImplicationRule",
    "ImplicationRuleSet",
    "LLMFallbackSettings",
    "RuleSettings",
    "merge_rule_sets",
    "ActionSuggestion",
    "GapAnalysis",
    "GapItem",
    "GateEvidence",
    "GateStatus",
    "HardGateItem",
    "HardGateResult",
    "InterviewFocus",
    "LearningPlan",
    "LearningTask",
    "MatchLevel",
    "MatchReport",
    "OverallGateStatus",
    "OverallScore",
    "Recommendation",
    "ReportMeta",
    "ReportSummary",
    "ResumeEdit",
    "ScoreDetail",
    "ScoreItem",
    "SoftScoreResult",
    "StrengthItem",
]
