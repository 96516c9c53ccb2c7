from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class GateStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    BORDERLINE = "BORDERLINE"
    UNKNOWN = "UNKNOWN"


class OverallGateStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    UNCERTAIN = "UNCERTAIN"


class MatchLevel(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @classmethod
    def from_score(cls, score: int) -> "MatchLevel":
        if score >= 90:
            return cls.A
        if score >= 75:
            return cls.B
        if score >= 60:
            return cls.C
        return cls.D

    @property
    def label(self) -> str:
        return {
            "A": "Match eccellente",
            "B": "Buon match",
            "C": "Match discreto",
            "D": "Match debole",
        }[self.value]


# ═══════════════════════════════════════════════════════════════════════════
# HARD GATE
# ═══════════════════════════════════════════════════════════════════════════

class GateEvidence(BaseModel):
    model_config = ConfigDict(frozen=True)

    jd: Optional[str] = None
    resume: Optional[str] = None


class HardGateItem(BaseModel):
    """Verdetto su un singolo requisito obbligatorio (immutabile)."""
    model_config = ConfigDict(frozen=True)

    requirement: str
    type: str
    status: GateStatus
    candidate_value: Optional[str] = None
    required_value: Optional[str] = None
    evidence: GateEvidence = GateEvidence()
    explanation: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class HardGateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_status: OverallGateStatus
    items: Tuple[HardGateItem, ...] = ()
    summary: str = ""
    borderline_warnings: Tuple[str, ...] = ()
    pass_count: int = 0
    fail_count: int = 0
    borderline_count: int = 0
    unknown_count: int = 0


# ═══════════════════════════════════════════════════════════════════════════
# SOFT SCORE
# ═══════════════════════════════════════════════════════════════════════════

class ScoreItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    status: str                 # matched | partial | missing
    points: float = 0.0
    max_points: float = 0.0
    reason: str = ""
    evidence: Optional[str] = None


class ScoreDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    dimension: str
    score: int = Field(ge=0, le=100)
    weight: float
    weighted_score: float
    items: Tuple[ScoreItem, ...] = ()
    summary: str = ""


class OverallScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    formula: str
    calculation: str
    final_score: int
    match_level: MatchLevel


class SoftScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_match: ScoreDetail
    experience_match: ScoreDetail
    bonus: ScoreDetail
    overall: OverallScore


# ═══════════════════════════════════════════════════════════════════════════
# GAP ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════

class GapItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str                           # hard_skill | soft_skill
    required_level: Optional[str] = None
    current_level: Optional[str] = None
    impact: str                         # high | medium | low
    jd_evidence: Optional[str] = None
    suggestion: str = ""
    priority: int = 0


class StrengthItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "expert_skill"
    description: str = ""
    highlight_suggestion: str = ""
    evidence: Optional[str] = None
    relevance: str                      # high | medium


class GapAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    missing: Tuple[GapItem, ...] = ()
    insufficient: Tuple[GapItem, ...] = ()
    strengths: Tuple[StrengthItem, ...] = ()

    @property
    def high_impact_gap_count(self) -> int:
        return sum(1 for g in self.missing + self.insufficient if g.impact == "high")


# ═══════════════════════════════════════════════════════════════════════════
# ACTIONS
# ═══════════════════════════════════════════════════════════════════════════

class ResumeEdit(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str                           # highlight | modify | add
    section: str
    current: Optional[str] = None
    suggested: str
    reason: str
    priority: int


class InterviewFocus(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    reason: str
    key_points: Tuple[str, ...] = ()
    sample_question: str = ""
    answer_approach: str = ""


class LearningTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int
    task: str
    estimated_hours: int
    deliverable: str


class LearningPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration: str
    focus_areas: Tuple[str, ...] = ()
    tasks: Tuple[LearningTask, ...] = ()
    resources: Tuple[str, ...] = ()
    expected_outcome: str = ""


class ActionSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    resume_edits: Tuple[ResumeEdit, ...] = ()
    interview_focus: Tuple[InterviewFocus, ...] = ()
    learning_plan: LearningPlan


# ═══════════════════════════════════════════════════════════════════════════
# REPORT
# ═══════════════════════════════════════════════════════════════════════════

class Recommendation(str, Enum):
    APPLY = "APPLY"
    NOT_RECOMMENDED = "NOT_RECOMMENDED"
    INSUFFICIENT_INFO = "INSUFFICIENT_INFO"


class ReportSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommendation: Recommendation
    overall_score: int
    hard_gate_status: OverallGateStatus
    match_level: MatchLevel
    one_line: str


class ReportMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: datetime
    latency_ms: int
    config_version: str
    rules_version: str
    dictionary_version: Optional[str] = None
    llm_provider: Optional[str] = None


class MatchReport(BaseModel):
    """Report completo di un match: creato una volta, non modificabile."""
    model_config = ConfigDict(frozen=True)

    summary: ReportSummary
    hard_gate: HardGateResult
    scores: SoftScoreResult
    gaps: GapAnalysis
    actions: ActionSuggestion
    meta: ReportMeta
