"""
Soft Scorer
Calcola i punteggi 0-100 sulle tre dimensioni (skill, esperienza, bonus) e
il punteggio finale pesato con il relativo livello A/B/C/D.
"""

import math
from typing import Dict, List, Optional

from jobfit.config import load_matcher_config
from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.candidate import CandidateProfile
from jobfit.models.job import JobRequirements, SoftWeight
from jobfit.models.match_result import (
    MatchLevel,
    OverallScore,
    ScoreDetail,
    ScoreItem,
    SoftScoreResult,
)
from jobfit.services.implication_engine import ImplicationEngine, ImplicationTier
from jobfit.services.logging_utils import log_section, print_with_prefix
from jobfit.services.skill_resolver import SkillResolver


def round_half_up(value: float) -> int:
    """Arrotondamento commerciale (0.5 -> 1), diverso dal round() di Python."""
    return int(math.floor(value + 0.5))


class SoftScorer:
    """
    Calcolo dei punteggi "morbidi".

    LOGICA:
    1. Skill: copertura delle skill obbligatorie (diretta, inferita, affine)
    2. Esperienza: media di settore, progetti e profondita delle esperienze
    3. Bonus: skill preferenziali possedute + punti extra per skill da esperto
    4. Finale: somma pesata arrotondata, poi classificata in MatchLevel
    """

    def __init__(
        self,
        skill_resolver: Optional[SkillResolver] = None,
        implication_engine: Optional[ImplicationEngine] = None,
        config: Optional[MatcherConfig] = None,
        verbose: bool = False,
    ):
        self._skill_resolver = skill_resolver
        self._implication_engine = implication_engine
        self.config = config or load_matcher_config()
        self.verbose = verbose

    @property
    def skill_resolver(self) -> SkillResolver:
        if self._skill_resolver is None:
            self._skill_resolver = SkillResolver()
        return self._skill_resolver

    @property
    def implication_engine(self) -> ImplicationEngine:
        if self._implication_engine is None:
            self._implication_engine = ImplicationEngine()
        return self._implication_engine

    def score(self, candidate: CandidateProfile, job: JobRequirements) -> SoftScoreResult:
        log_section(self._log, "SOFT SCORE", width=60, char="-")
        skill = self.score_skills(candidate, job)
        experience = self.score_experience(candidate, job)
        bonus = self.score_bonus(candidate, job)
        result = self.combine(skill, experience, bonus)
        self._log(f"   -> {result.overall.calculation} -> {result.overall.final_score} ({result.overall.match_level.value})")
        return result

    def combine(self, skill: ScoreDetail, experience: ScoreDetail, bonus: ScoreDetail) -> SoftScoreResult:
        """Punteggio finale = somma pesata arrotondata + livello."""
        total = skill.weighted_score + experience.weighted_score + bonus.weighted_score
        final_score = round_half_up(total)
        return SoftScoreResult(
            skill_match=skill,
            experience_match=experience,
            bonus=bonus,
            overall=OverallScore(
                formula=f"skill*{skill.weight:g} + experience*{experience.weight:g} + bonus*{bonus.weight:g}",
                calculation=(
                    f"{skill.score}*{skill.weight:g} + {experience.score}*{experience.weight:g} + "
                    f"{bonus.score}*{bonus.weight:g} = {total:.1f}"
                ),
                final_score=final_score,
                match_level=MatchLevel.from_score(final_score),
            ),
        )

    # ═══════════════════════════════════════════════════════════════════
    # STEP 1: Skill
    # ═══════════════════════════════════════════════════════════════════

    def score_skills(self, candidate: CandidateProfile, job: JobRequirements) -> ScoreDetail:
        scoring = self.config.scoring.skill
        base = scoring.base_point

        # nome standard (lower) -> nome da mostrare, senza duplicati
        required: Dict[str, str] = {}
        for req in job.required_skills():
            name = req.standard_name or self.skill_resolver.standardize(req.skill or req.requirement)
            required.setdefault(name.lower(), name)

        candidate_standard = self._candidate_standard_names(candidate)
        candidate_names = candidate.skill_names()

        items: List[ScoreItem] = []
        awarded = 0.0
        for key, display in required.items():
            if key in candidate_standard:
                items.append(ScoreItem(name=display, status="matched", points=base, max_points=base,
                                       reason="Skill presente nel profilo"))
                awarded += base
                continue

            implication = self.implication_engine.resolve(candidate_names, display)
            if implication.matched:
                direct = implication.tier == ImplicationTier.DIRECT
                points = base if direct else base * scoring.inference_multiplier
                items.append(ScoreItem(
                    name=display,
                    status="matched" if direct else "partial",
                    points=points,
                    max_points=base,
                    reason=f"Inferita da {', '.join(implication.matching_skills)}",
                    evidence=implication.describe(),
                ))
                awarded += points
            elif self._has_related_skill(display, candidate_standard):
                points = base * scoring.partial_multiplier
                items.append(ScoreItem(name=display, status="partial", points=points, max_points=base,
                                       reason="Skill affine della stessa categoria"))
                awarded += points
            else:
                items.append(ScoreItem(name=display, status="missing", points=0, max_points=base,
                                       reason="Skill assente"))

        possible = base * len(required)
        score = round_half_up(awarded / possible * 100) if possible > 0 else 0
        matched = sum(1 for i in items if i.status == "matched")
        return self._detail(
            "skill", score, items,
            summary=f"Copertura skill: {matched}/{len(required)} presenti, {awarded:g}/{possible:g} punti",
        )

    # ═══════════════════════════════════════════════════════════════════
    # STEP 2: Esperienza
    # ═══════════════════════════════════════════════════════════════════

    def score_experience(self, candidate: CandidateProfile, job: JobRequirements) -> ScoreDetail:
        heuristics = (
            ("Pertinenza settore", self._industry_relevance(candidate, job),
             ("Settore molto pertinente", "Settore in parte pertinente", "Settore poco pertinente")),
            ("Affinita progetti", self._project_similarity(candidate, job),
             ("Progetti molto affini al ruolo", "Alcuni progetti affini", "Progetti poco affini")),
            ("Profondita esperienza", self._experience_depth(candidate),
             ("Esperienza approfondita", "Esperienza nella media", "Esperienza limitata")),
        )

        items = []
        for name, value, reasons in heuristics:
            status, reason = self._label(value, reasons)
            items.append(ScoreItem(name=name, status=status, points=value, max_points=100, reason=reason))

        score = sum(value for _, value, _ in heuristics) // len(heuristics)
        return self._detail("experience", score, items, summary=f"Esperienza: punteggio medio {score}")

    def _label(self, value: int, reasons) -> tuple:
        thresholds = self.config.scoring.experience
        if value >= thresholds.matched_threshold:
            return "matched", reasons[0]
        if value >= thresholds.partial_threshold:
            return "partial", reasons[1]
        return "missing", reasons[2]

    def _industry_relevance(self, candidate: CandidateProfile, job: JobRequirements) -> int:
        if job.original_text is None or candidate.original_text is None:
            return 50
        jd_text = job.original_text.lower()
        cv_text = candidate.original_text.lower()
        matches = sum(
            1 for kw in self.config.scoring.experience.industry_keywords
            if kw.lower() in jd_text and kw.lower() in cv_text
        )
        return min(100, 50 + matches * 15)

    def _project_similarity(self, candidate: CandidateProfile, job: JobRequirements) -> int:
        if not candidate.projects:
            return 30
        if job.original_text is None:
            return 50
        relevant = sum(
            1 for p in candidate.projects
            if self._keyword_overlap(" ".join(p.achievements), job.original_text)
            or self._keyword_overlap(" ".join(p.tech_stack), job.original_text)
        )
        return min(100, 30 + relevant * 20)

    @staticmethod
    def _experience_depth(candidate: CandidateProfile) -> int:
        if not candidate.experiences:
            return 20
        base = min(60, 20 + len(candidate.experiences) * 10)
        detail = sum(min(15, len(exp.highlights) * 5) for exp in candidate.experiences)
        return min(100, base + detail)

    def _keyword_overlap(self, text: str, other: str) -> bool:
        if not text or not other:
            return False
        text, other = text.lower(), other.lower()
        return any(
            kw.lower() in text and kw.lower() in other
            for kw in self.config.scoring.experience.project_keywords
        )

    # ═══════════════════════════════════════════════════════════════════
    # STEP 3: Bonus
    # ═══════════════════════════════════════════════════════════════════

    def score_bonus(self, candidate: CandidateProfile, job: JobRequirements) -> ScoreDetail:
        bonus_cfg = self.config.scoring.bonus
        items: List[ScoreItem] = []
        awarded = 0
        possible = 0

        for req in job.preferred_skills():
            skill = req.skill or req.standard_name
            if not skill:
                continue
            value = bonus_cfg.bonus_skill_points if req.weight == SoftWeight.BONUS else bonus_cfg.normal_skill_points
            possible += value
            if self.has_skill(candidate, skill):
                awarded += value
                items.append(ScoreItem(name=f"{skill} (preferenziale)", status="matched", points=value,
                                       max_points=value, reason="Skill preferenziale posseduta"))
            else:
                items.append(ScoreItem(name=f"{skill} (preferenziale)", status="missing", points=0,
                                       max_points=value, reason="Skill preferenziale assente"))

        expert_count = sum(
            1 for s in candidate.skills if self.config.normalize_proficiency(s.level) == "expert"
        )
        unique = min(bonus_cfg.unique_strength_max, expert_count * bonus_cfg.expert_skill_bonus)
        if unique > 0:
            possible += bonus_cfg.unique_strength_max
            awarded += unique
            items.append(ScoreItem(name="Punti di forza distintivi", status="matched", points=unique,
                                   max_points=bonus_cfg.unique_strength_max,
                                   reason=f"{expert_count} skill a livello esperto"))

        score = round_half_up(awarded / possible * 100) if possible > 0 else bonus_cfg.default_score
        hits = sum(1 for i in items if i.status == "matched")
        return self._detail("bonus", score, items, summary=f"Bonus: {hits} elementi a favore")

    def has_skill(self, candidate: CandidateProfile, skill: str) -> bool:
        """Presenza diretta (nome standard) o inferita dal motore di implicazione."""
        if self.skill_resolver.standardize(skill).lower() in self._candidate_standard_names(candidate):
            return True
        return self.implication_engine.resolve(candidate.skill_names(), skill).matched

    # ═══════════════════════════════════════════════════════════════════
    # Helper
    # ═══════════════════════════════════════════════════════════════════

    def _candidate_standard_names(self, candidate: CandidateProfile) -> set:
        return {
            (s.standard_name or self.skill_resolver.standardize(s.name)).lower()
            for s in candidate.skills
        }

    def _has_related_skill(self, required: str, candidate_standard: set) -> bool:
        category = self.skill_resolver.category_of(required)
        if category is None:
            return False
        return any(self.skill_resolver.category_of(name) == category for name in candidate_standard)

    def _detail(self, dimension: str, score: int, items: List[ScoreItem], summary: str) -> ScoreDetail:
        weight = self.config.weight(dimension)
        score = max(0, min(100, score))
        return ScoreDetail(
            dimension=dimension,
            score=score,
            weight=weight,
            weighted_score=score * weight,
            items=items,
            summary=summary,
        )

    def _log(self, message: str) -> None:
        print_with_prefix("[SoftScorer]", message, enabled=self.verbose)
