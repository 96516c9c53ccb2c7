"""
Gap Analyzer
Confronta requisiti e profilo: skill mancanti, skill insufficienti e punti di forza.
"""

from typing import List, Optional, Set

from jobfit.config import load_matcher_config
from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.candidate import CandidateProfile
from jobfit.models.job import HardRequirement, JobRequirements
from jobfit.models.match_result import GapAnalysis, GapItem, StrengthItem
from jobfit.models.skill import Skill
from jobfit.services.implication_engine import ImplicationEngine
from jobfit.services.logging_utils import log_section, print_with_prefix
from jobfit.services.skill_resolver import SkillResolver

IMPACT_HIGH = "high"
IMPACT_MEDIUM = "medium"
IMPACT_LOW = "low"


class GapAnalyzer:
    """
    Analisi dei gap tra annuncio e candidato.

    Un requisito skill non soddisfatto (ne direttamente ne per inferenza)
    diventa "insufficient" se il candidato ha una skill della stessa
    categoria, altrimenti "missing". La priorita cresce in ordine:
    prima i requisiti obbligatori, poi quelli preferenziali.
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

    def analyze(self, candidate: CandidateProfile, job: JobRequirements) -> GapAnalysis:
        log_section(self._log, "GAP ANALYSIS", width=60, char="-")
        candidate_standard = {self._standard_of(s).lower() for s in candidate.skills}
        missing: List[GapItem] = []
        insufficient: List[GapItem] = []
        priority = 1

        requirements = [(r, True) for r in job.required_skills()] + [(r, False) for r in job.preferred_skills()]
        for req, mandatory in requirements:
            raw = req.skill or req.standard_name or req.requirement
            name = req.standard_name or self.skill_resolver.standardize(raw)
            if name.lower() in candidate_standard:
                continue
            implication = self.implication_engine.resolve(candidate.skill_names(), raw)
            if implication.matched:
                self._log(f"   {name}: coperta da {', '.join(implication.matching_skills)}")
                continue

            related = self._find_related_skill(candidate, name)
            if related is not None:
                insufficient.append(self._insufficient_gap(req, name, related, mandatory, priority))
            else:
                missing.append(self._missing_gap(req, name, mandatory, priority))
            priority += 1

        strengths = self._find_strengths(candidate, job)
        self._log(f"   -> {len(missing)} mancanti, {len(insufficient)} insufficienti, {len(strengths)} punti di forza")
        return GapAnalysis(missing=missing, insufficient=insufficient, strengths=strengths)

    # ═══════════════════════════════════════════════════════════════════
    # Gap
    # ═══════════════════════════════════════════════════════════════════

    def _missing_gap(self, req, name: str, mandatory: bool, priority: int) -> GapItem:
        return GapItem(
            name=name,
            type="hard_skill" if mandatory else "soft_skill",
            required_level=req.level or ("obbligatoria" if mandatory else "preferenziale"),
            impact=IMPACT_HIGH if mandatory else IMPACT_LOW,
            jd_evidence=_jd_evidence(req),
            suggestion=self.suggest(name),
            priority=priority,
        )

    def _insufficient_gap(self, req, name: str, related: Skill, mandatory: bool, priority: int) -> GapItem:
        current = related.level if related.level and related.level != "unknown" else None
        target = req.level or "il livello richiesto"
        return GapItem(
            name=name,
            type="hard_skill" if mandatory else "soft_skill",
            required_level=req.level,
            current_level=current,
            impact=IMPACT_MEDIUM if mandatory else IMPACT_LOW,
            jd_evidence=_jd_evidence(req),
            suggestion=(
                f"Parti da {related.name} ({current or 'livello non indicato'}) "
                f"per portare {name} a {target}"
            ),
            priority=priority,
        )

    def suggest(self, skill: str) -> str:
        """Suggerimento dal template della categoria (default se assente)."""
        template = self.config.get_suggestion_template(self.skill_resolver.category_of(skill))
        return template.replace("{skill}", skill)

    def _find_related_skill(self, candidate: CandidateProfile, target: str) -> Optional[Skill]:
        category = self.skill_resolver.category_of(target)
        if category is None:
            return None
        for skill in candidate.skills:
            if self.skill_resolver.category_of(self._standard_of(skill)) == category:
                return skill
        return None

    # ═══════════════════════════════════════════════════════════════════
    # Punti di forza
    # ═══════════════════════════════════════════════════════════════════

    def _find_strengths(self, candidate: CandidateProfile, job: JobRequirements) -> List[StrengthItem]:
        required: Set[str] = {
            (r.standard_name or self.skill_resolver.standardize(r.skill or r.requirement)).lower()
            for r in job.required_skills()
        }
        valuable = set(self.config.gap.valuable_categories)

        strengths = []
        for skill in candidate.skills:
            if self.config.normalize_proficiency(skill.level) != "expert":
                continue
            standard = self._standard_of(skill)
            if standard.lower() in required:
                relevance = "high"
            elif self.skill_resolver.category_of(standard) in valuable:
                relevance = "medium"
            else:
                continue
            strengths.append(StrengthItem(
                name=standard,
                type="expert_skill",
                description=f"Livello esperto in {standard}",
                highlight_suggestion=f"Metti in evidenza nel CV e al colloquio l'esperienza approfondita con {standard}",
                evidence=skill.evidence[0] if skill.evidence else None,
                relevance=relevance,
            ))
        return strengths

    def _standard_of(self, skill: Skill) -> str:
        return skill.standard_name or self.skill_resolver.standardize(skill.name)

    def _log(self, message: str) -> None:
        print_with_prefix("[GapAnalyzer]", message, enabled=self.verbose)


def _jd_evidence(req) -> Optional[str]:
    if req.evidence:
        return req.evidence[0]
    return req.requirement if isinstance(req, HardRequirement) else None
