"""
Matching Orchestrator
Esegue in sequenza i quattro stadi del match e compone il report finale.

Responsabilita:
- Costruisce (lazy) e condivide resolver, motore di implicazione e agenti
- Esegue sempre HardGate -> SoftScore -> GapAnalysis -> Actions, anche se il
  gate fallisce, cosi il report resta completo
- Produce raccomandazione, riepilogo in una riga e metadati (versioni, latenza)
"""

import time
from datetime import datetime, timezone
from typing import Optional

from jobfit.agents.action_generator import ActionGenerator
from jobfit.agents.gap_analyzer import GapAnalyzer
from jobfit.agents.hard_gate import HardGateEvaluator
from jobfit.agents.soft_scorer import SoftScorer
from jobfit.config import load_matcher_config, load_rule_set
from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.candidate import CandidateProfile
from jobfit.models.job import JobRequirements
from jobfit.models.match_result import (
    GapAnalysis,
    HardGateResult,
    MatchLevel,
    MatchReport,
    OverallGateStatus,
    Recommendation,
    ReportMeta,
    ReportSummary,
    SoftScoreResult,
)
from jobfit.models.rules import ImplicationRuleSet
from jobfit.services.implication_engine import ImplicationEngine
from jobfit.services.llm_service import LLMService
from jobfit.services.logging_utils import log_fields, log_section, print_with_prefix
from jobfit.services.skill_resolver import SkillResolver

HIGH_SKILL_COVERAGE = 80


class MatchOrchestrator:
    """
    Orchestratore del match candidato/annuncio.

    FLUSSO:
    1. HardGateEvaluator -> HardGateResult
    2. SoftScorer        -> SoftScoreResult
    3. GapAnalyzer       -> GapAnalysis
    4. ActionGenerator   -> ActionSuggestion
    5. Raccomandazione + riepilogo + metadati -> MatchReport
    """

    def __init__(
        self,
        config: Optional[MatcherConfig] = None,
        rule_set: Optional[ImplicationRuleSet] = None,
        skill_resolver: Optional[SkillResolver] = None,
        implication_engine: Optional[ImplicationEngine] = None,
        llm_service: Optional[LLMService] = None,
        use_llm: bool = False,
        verbose: bool = False,
    ):
        """
        Args:
            config: Parametri del matcher (default: load_matcher_config())
            rule_set: Regole di implicazione (default: load_rule_set())
            skill_resolver: Dizionario skill condiviso
            implication_engine: Motore di implicazione condiviso
            llm_service: Servizio LLM per l'ultimo livello di inferenza
            use_llm: Se True e llm_service e None, crea un LLMService di default
            verbose: Se True, stampa log
        """
        self.verbose = verbose
        self.use_llm = use_llm
        self.config = config or load_matcher_config()

        # Servizi condivisi
        self._rule_set = rule_set
        self._skill_resolver = skill_resolver
        self._implication_engine = implication_engine
        self._llm_service = llm_service

        # Agenti (lazy init)
        self._hard_gate = None
        self._soft_scorer = None
        self._gap_analyzer = None
        self._action_generator = None

    @property
    def llm_service(self) -> Optional[LLMService]:
        if self._llm_service is None and self.use_llm:
            self._llm_service = LLMService(verbose=self.verbose)
        return self._llm_service

    @property
    def skill_resolver(self) -> SkillResolver:
        if self._skill_resolver is None:
            self._skill_resolver = SkillResolver(verbose=self.verbose)
        return self._skill_resolver

    @property
    def implication_engine(self) -> ImplicationEngine:
        if self._implication_engine is None:
            self._implication_engine = ImplicationEngine(
                rule_set=self._rule_set or load_rule_set(),
                llm_service=self.llm_service,
                verbose=self.verbose,
            )
        return self._implication_engine

    @property
    def hard_gate(self) -> HardGateEvaluator:
        if self._hard_gate is None:
            self._hard_gate = HardGateEvaluator(
                skill_resolver=self.skill_resolver,
                implication_engine=self.implication_engine,
                config=self.config,
                verbose=self.verbose,
            )
        return self._hard_gate

    @property
    def soft_scorer(self) -> SoftScorer:
        if self._soft_scorer is None:
            self._soft_scorer = SoftScorer(
                skill_resolver=self.skill_resolver,
                implication_engine=self.implication_engine,
                config=self.config,
                verbose=self.verbose,
            )
        return self._soft_scorer

    @property
    def gap_analyzer(self) -> GapAnalyzer:
        if self._gap_analyzer is None:
            self._gap_analyzer = GapAnalyzer(
                skill_resolver=self.skill_resolver,
                implication_engine=self.implication_engine,
                config=self.config,
                verbose=self.verbose,
            )
        return self._gap_analyzer

    @property
    def action_generator(self) -> ActionGenerator:
        if self._action_generator is None:
            self._action_generator = ActionGenerator(config=self.config, verbose=self.verbose)
        return self._action_generator

    def run(self, candidate: CandidateProfile, job: JobRequirements) -> MatchReport:
        """
        Esegue il match completo.

        Args:
            candidate: Profilo strutturato del candidato
            job: Requisiti strutturati dell'annuncio

        Returns:
            MatchReport immutabile
        """
        start = time.perf_counter()
        log_section(
            self._log,
            f"MATCH: {candidate.name or 'Candidato'} vs {job.title or 'Annuncio'}",
            width=70,
            char="=",
        )

        # ═══════════════════════════════════════════════════════════════
        # PHASE 1: Hard gate
        # ═══════════════════════════════════════════════════════════════
        hard_gate = self.hard_gate.evaluate(candidate, job)

        # ═══════════════════════════════════════════════════════════════
        # PHASE 2: Soft score (calcolato anche se il gate fallisce)
        # ═══════════════════════════════════════════════════════════════
        scores = self.soft_scorer.score(candidate, job)

        # ═══════════════════════════════════════════════════════════════
        # PHASE 3: Gap analysis
        # ═══════════════════════════════════════════════════════════════
        gaps = self.gap_analyzer.analyze(candidate, job)

        # ═══════════════════════════════════════════════════════════════
        # PHASE 4: Actions
        # ═══════════════════════════════════════════════════════════════
        actions = self.action_generator.generate(hard_gate, scores, gaps)

        # ═══════════════════════════════════════════════════════════════
        # PHASE 5: Report
        # ═══════════════════════════════════════════════════════════════
        summary = ReportSummary(
            recommendation=recommend(hard_gate.overall_status, scores.overall.match_level),
            overall_score=scores.overall.final_score,
            hard_gate_status=hard_gate.overall_status,
            match_level=scores.overall.match_level,
            one_line=build_one_line_summary(hard_gate, scores, gaps),
        )
        latency_ms = int((time.perf_counter() - start) * 1000)
        llm = self.implication_engine.llm_service
        meta = ReportMeta(
            created_at=datetime.now(timezone.utc),
            latency_ms=latency_ms,
            config_version=self.config.version,
            rules_version=self.implication_engine.rules_version,
            dictionary_version=self.skill_resolver.version,
            llm_provider=getattr(llm, "description", None) if llm is not None else None,
        )

        log_section(self._log, "FINAL RESULT", width=70, char="-")
        log_fields(self._log, [
            ("Hard gate", hard_gate.overall_status.value),
            ("Score", f"{summary.overall_score}/100 ({summary.match_level.value})"),
            ("Raccomandazione", summary.recommendation.value),
            ("Latenza", f"{latency_ms} ms"),
        ])
        self._log(summary.one_line)

        return MatchReport(
            summary=summary,
            hard_gate=hard_gate,
            scores=scores,
            gaps=gaps,
            actions=actions,
            meta=meta,
        )

    def _log(self, message: str) -> None:
        """Conditional logging."""
        print_with_prefix("[Orchestrator]", message, enabled=self.verbose)


def recommend(gate_status: OverallGateStatus, level: MatchLevel) -> Recommendation:
    if gate_status == OverallGateStatus.FAILED:
        return Recommendation.NOT_RECOMMENDED
    if gate_status == OverallGateStatus.UNCERTAIN:
        return Recommendation.INSUFFICIENT_INFO
    if level == MatchLevel.D:
        return Recommendation.NOT_RECOMMENDED
    return Recommendation.APPLY


def build_one_line_summary(hard_gate: HardGateResult, scores: SoftScoreResult, gaps: GapAnalysis) -> str:
    """Riepilogo in una riga: livello + clausole aggiunte solo se rilevanti."""
    level = scores.overall.match_level
    clauses = [f"{level.label} ({scores.overall.final_score}/100)"]

    if scores.skill_match.score >= HIGH_SKILL_COVERAGE:
        clauses.append("copertura skill alta")
    if gaps.high_impact_gap_count > 0:
        clauses.append(f"{gaps.high_impact_gap_count} gap critici")
    highlights = sum(1 for s in gaps.strengths if s.relevance == "high")
    if highlights:
        clauses.append(f"{highlights} punti di forza da valorizzare")
    if hard_gate.borderline_warnings:
        clauses.append(f"{len(hard_gate.borderline_warnings)} casi limite da verificare")

    return ", ".join(clauses)


# ═══════════════════════════════════════════════════════════════════════════
# SIMPLE API
# ═══════════════════════════════════════════════════════════════════════════

def match_profile_to_job(
    candidate: CandidateProfile,
    job: JobRequirements,
    verbose: bool = False,
    use_llm: bool = False,
) -> MatchReport:
    """
    API semplice per il match profilo-annuncio con configurazione di default.

    Args:
        candidate: Profilo del candidato
        job: Requisiti dell'annuncio
        verbose: Se True, stampa log
        use_llm: Se True, abilita l'inferenza tramite LLM locale

    Returns:
        MatchReport completo
    """
    orchestrator = MatchOrchestrator(use_llm=use_llm, verbose=verbose)
    return orchestrator.run(candidate, job)
