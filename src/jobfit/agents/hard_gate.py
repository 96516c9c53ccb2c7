"""
Hard Gate Evaluator
Valuta i requisiti obbligatori dell'annuncio.

Responsabilita:
- Un verdetto PASS / FAIL / BORDERLINE / UNKNOWN per ogni requisito
- Stato complessivo con precedenza FAIL > UNKNOWN > PASSED
- BORDERLINE resta un avviso e non cambia lo stato complessivo
"""

import re
from datetime import date
from typing import Callable, Dict, List, Optional

from jobfit.config import load_matcher_config
from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.candidate import CandidateProfile
from jobfit.models.job import HardRequirement, JobRequirements, RequirementType
from jobfit.models.match_result import (
    GateEvidence,
    GateStatus,
    HardGateItem,
    HardGateResult,
    OverallGateStatus,
)
from jobfit.models.skill import Skill
from jobfit.services.implication_engine import ImplicationEngine
from jobfit.services.logging_utils import log_section, print_with_prefix
from jobfit.services.skill_resolver import SkillResolver

YEARS_PATTERN = re.compile(r"(\d+)\s*(?:\+|年|anni|anno|years?|yrs?)", re.IGNORECASE)
FOUR_DIGIT_YEAR = re.compile(r"(?<!\d)(\d{4})(?!\d)")
OPEN_ENDED_MARKERS = ("至今", "present", "now", "current", "oggi", "presente", "attuale", "in corso")


class HardGateEvaluator:
    """
    Valutatore dei requisiti obbligatori.

    FLUSSO:
    1. Dispatch per tipo di requisito (esperienza, skill, titolo di studio,
       certificazione, settore)
    2. Raccolta avvisi per i casi BORDERLINE
    3. Stato complessivo + riepilogo
    """

    def __init__(
        self,
        skill_resolver: Optional[SkillResolver] = None,
        implication_engine: Optional[ImplicationEngine] = None,
        config: Optional[MatcherConfig] = None,
        current_year: Optional[int] = None,
        verbose: bool = False,
    ):
        self._skill_resolver = skill_resolver
        self._implication_engine = implication_engine
        self.config = config or load_matcher_config()
        self.current_year = current_year or date.today().year
        self.verbose = verbose

        self._handlers: Dict[RequirementType, Callable[[HardRequirement, CandidateProfile], HardGateItem]] = {
            RequirementType.EXPERIENCE: self._check_experience,
            RequirementType.SKILL: self._check_skill,
            RequirementType.EDUCATION: self._check_education,
            RequirementType.CERTIFICATION: self._check_certification,
            RequirementType.INDUSTRY: self._check_industry,
        }

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

    def evaluate(self, candidate: CandidateProfile, job: JobRequirements) -> HardGateResult:
        """Valuta tutti i requisiti obbligatori di `job` sul profilo `candidate`."""
        log_section(self._log, "HARD GATE", width=60, char="-")
        items: List[HardGateItem] = []
        warnings: List[str] = []

        for req in job.hard_requirements:
            handler = self._handlers.get(req.type)
            if handler is None:
                item = self._unknown_item(req, "Tipo di requisito non riconosciuto")
            else:
                item = handler(req, candidate)
            items.append(item)
            self._log(f"   [{item.status.value}] {req.type.value}: {req.requirement}")

            if item.status == GateStatus.BORDERLINE:
                warnings.append(f"{req.type.value}: {req.requirement} (candidato: {item.candidate_value})")

        counts = {status: sum(1 for i in items if i.status == status) for status in GateStatus}
        overall = self._overall_status(items)
        self._log(f"   -> Stato complessivo: {overall.value}")

        return HardGateResult(
            overall_status=overall,
            items=items,
            summary=self._build_summary(overall, counts),
            borderline_warnings=warnings,
            pass_count=counts[GateStatus.PASS],
            fail_count=counts[GateStatus.FAIL],
            borderline_count=counts[GateStatus.BORDERLINE],
            unknown_count=counts[GateStatus.UNKNOWN],
        )

    # ═══════════════════════════════════════════════════════════════════
    # Handler per tipo
    # ═══════════════════════════════════════════════════════════════════

    def _check_experience(self, req: HardRequirement, candidate: CandidateProfile) -> HardGateItem:
        required = req.years_required
        if required is None:
            required = extract_required_years(req.requirement)
        if required is None:
            return self._unknown_item(req, "Impossibile determinare gli anni richiesti")

        years = self.candidate_years(candidate)
        delta = self.config.borderline.delta_years

        if years >= required:
            status = GateStatus.PASS
            explanation = f"Il candidato ha {years} anni di esperienza, requisito di {required} soddisfatto"
        elif years >= required - delta:
            status = GateStatus.BORDERLINE
            explanation = f"Il candidato ha {years} anni di esperienza, vicino ai {required} richiesti"
        else:
            status = GateStatus.FAIL
            explanation = f"Il candidato ha {years} anni di esperienza, non raggiunge i {required} richiesti"

        return HardGateItem(
            requirement=req.requirement,
            type=req.type.value,
            status=status,
            candidate_value=f"{years} anni",
            required_value=f"{required} anni",
            evidence=GateEvidence(jd=_jd_evidence(req), resume=_experience_evidence(candidate)),
            explanation=explanation,
            confidence=self.config.confidence.direct_match,
        )

    def _check_skill(self, req: HardRequirement, candidate: CandidateProfile) -> HardGateItem:
        required_skill = req.skill or req.standard_name or req.requirement
        standard = req.standard_name or self.skill_resolver.standardize(required_skill)
        required_value = required_skill + (f" ({req.level})" if req.level else "")
        jd_evidence = _jd_evidence(req)

        matched = self._find_skill(candidate, standard)
        if matched is not None:
            candidate_value = matched.name + (f" ({matched.level})" if matched.level else "")
            status = GateStatus.PASS
            explanation = f"Il candidato possiede {standard}"
            if req.level and self._has_known_level(matched):
                if self.config.get_proficiency_score(matched.level) < self.config.get_proficiency_score(req.level):
                    status = GateStatus.BORDERLINE
                    explanation = (
                        f"Il candidato possiede {standard} ma con livello {matched.level} "
                        f"inferiore a quello richiesto ({req.level})"
                    )
                else:
                    explanation = f"Il candidato possiede {standard} con livello adeguato"
            return HardGateItem(
                requirement=req.requirement,
                type=req.type.value,
                status=status,
                candidate_value=candidate_value,
                required_value=required_value,
                evidence=GateEvidence(jd=jd_evidence, resume=matched.evidence[0] if matched.evidence else None),
                explanation=explanation,
                confidence=self.config.confidence.direct_match,
            )

        implication = self.implication_engine.resolve(candidate.skill_names(), required_skill)
        if implication.matched:
            via = ", ".join(implication.matching_skills)
            return HardGateItem(
                requirement=req.requirement,
                type=req.type.value,
                status=GateStatus.PASS,
                candidate_value=implication.describe(),
                required_value=required_value,
                evidence=GateEvidence(jd=jd_evidence, resume=f"Skill inferita da: {via}"),
                explanation=f"{standard} inferita da {via} (livello {implication.tier.value})",
                confidence=implication.confidence if implication.confidence > 0 else self.config.confidence.implied_match,
            )

        return HardGateItem(
            requirement=req.requirement,
            type=req.type.value,
            status=GateStatus.FAIL,
            candidate_value="non trovata",
            required_value=required_value,
            evidence=GateEvidence(jd=jd_evidence),
            explanation=f"Nessuna skill riconducibile a {standard} nel profilo",
            confidence=self.config.confidence.unknown,
        )

    def _check_education(self, req: HardRequirement, candidate: CandidateProfile) -> HardGateItem:
        education = (candidate.education or "").strip()
        if not education:
            return self._unknown_item(req, "Titolo di studio non indicato nel profilo")

        required_level = self.config.get_education_score(req.value or req.requirement)
        candidate_level = self.config.get_education_score(education)

        if candidate_level >= required_level:
            status = GateStatus.PASS
            explanation = f"Titolo di studio ({education}) adeguato"
        elif candidate_level == required_level - 1:
            status = GateStatus.BORDERLINE
            explanation = f"Titolo di studio ({education}) di un livello inferiore al richiesto"
        else:
            status = GateStatus.FAIL
            explanation = f"Titolo di studio ({education}) non sufficiente"

        return HardGateItem(
            requirement=req.requirement,
            type=req.type.value,
            status=status,
            candidate_value=education,
            required_value=req.value or req.requirement,
            evidence=GateEvidence(jd=_jd_evidence(req), resume=education),
            explanation=explanation,
            confidence=self.config.confidence.direct_match * 0.9,
        )

    def _check_certification(self, req: HardRequirement, candidate: CandidateProfile) -> HardGateItem:
        if candidate.original_text is None and not candidate.certifications:
            return self._unknown_item(req, "Impossibile verificare le certificazioni")

        needle = (req.value or req.requirement).lower()
        haystacks = [candidate.original_text or ""] + candidate.certifications
        found = any(needle in h.lower() for h in haystacks)
        return self._presence_item(
            req,
            found,
            found_text=("trovata", "Certificazione citata nel profilo"),
            missing_text=("non trovata", "La certificazione non e citata esplicitamente"),
        )

    def _check_industry(self, req: HardRequirement, candidate: CandidateProfile) -> HardGateItem:
        if candidate.original_text is None:
            return self._unknown_item(req, "Impossibile verificare l'esperienza di settore")

        needle = (req.value or req.requirement).lower()
        found = needle in candidate.original_text.lower() or any(
            exp.company and needle in exp.company.lower() for exp in candidate.experiences
        )
        return self._presence_item(
            req,
            found,
            found_text=("esperienza nel settore", "Il candidato ha esperienza nel settore richiesto"),
            missing_text=("non chiaro", "Non e possibile stabilire l'esperienza nel settore"),
        )

    # ═══════════════════════════════════════════════════════════════════
    # Helper
    # ═══════════════════════════════════════════════════════════════════

    def candidate_years(self, candidate: CandidateProfile) -> int:
        """Anni dichiarati, altrimenti somma delle durate delle esperienze."""
        if candidate.experience_years is not None:
            return candidate.experience_years
        months = sum(self.parse_duration_months(exp.duration) for exp in candidate.experiences)
        return months // 12

    def parse_duration_months(self, duration: Optional[str]) -> int:
        if not duration or not duration.strip():
            return 0
        years = [int(y) for y in FOUR_DIGIT_YEAR.findall(duration)]
        if len(years) >= 2:
            return max(0, (years[1] - years[0]) * 12)
        lowered = duration.lower()
        if len(years) == 1 and any(marker in lowered for marker in OPEN_ENDED_MARKERS):
            return max(0, (self.current_year - years[0]) * 12)
        return self.config.duration.default_months

    def _find_skill(self, candidate: CandidateProfile, standard: str) -> Optional[Skill]:
        target = standard.lower()
        for skill in candidate.skills:
            name = skill.standard_name or self.skill_resolver.standardize(skill.name)
            if name.lower() == target:
                return skill
        return None

    def _has_known_level(self, skill: Skill) -> bool:
        return bool(skill.level) and skill.level.lower() != "unknown"

    def _presence_item(self, req: HardRequirement, found: bool, found_text, missing_text) -> HardGateItem:
        value, explanation = found_text if found else missing_text
        return HardGateItem(
            requirement=req.requirement,
            type=req.type.value,
            status=GateStatus.PASS if found else GateStatus.UNKNOWN,
            candidate_value=value,
            required_value=req.value or req.requirement,
            evidence=GateEvidence(jd=_jd_evidence(req)),
            explanation=explanation,
            confidence=self.config.confidence.keyword_match if found else self.config.confidence.unknown,
        )

    def _unknown_item(self, req: HardRequirement, reason: str) -> HardGateItem:
        return HardGateItem(
            requirement=req.requirement,
            type=req.type.value,
            status=GateStatus.UNKNOWN,
            candidate_value="informazioni insufficienti",
            required_value=req.value,
            evidence=GateEvidence(jd=_jd_evidence(req)),
            explanation=reason,
            confidence=self.config.confidence.unknown,
        )

    @staticmethod
    def _overall_status(items: List[HardGateItem]) -> OverallGateStatus:
        if any(i.status == GateStatus.FAIL for i in items):
            return OverallGateStatus.FAILED
        if any(i.status == GateStatus.UNKNOWN for i in items):
            return OverallGateStatus.UNCERTAIN
        return OverallGateStatus.PASSED

    @staticmethod
    def _build_summary(status: OverallGateStatus, counts: Dict[GateStatus, int]) -> str:
        if status == OverallGateStatus.FAILED:
            return f"Requisiti obbligatori non soddisfatti: {counts[GateStatus.FAIL]} non rispettati"
        if status == OverallGateStatus.UNCERTAIN:
            return (
                f"Informazioni insufficienti: {counts[GateStatus.UNKNOWN]} requisiti non verificabili, "
                "conviene integrare il CV"
            )
        summary = f"Requisiti obbligatori superati: {counts[GateStatus.PASS]} soddisfatti"
        if counts[GateStatus.BORDERLINE]:
            summary += f", {counts[GateStatus.BORDERLINE]} casi limite da verificare"
        return summary

    def _log(self, message: str) -> None:
        print_with_prefix("[HardGate]", message, enabled=self.verbose)


def extract_required_years(text: Optional[str]) -> Optional[int]:
    """Estrae gli anni richiesti da testi come "5年+", "3+ anni", "5 years"."""
    if not text:
        return None
    match = YEARS_PATTERN.search(text)
    return int(match.group(1)) if match else None


def _jd_evidence(req: HardRequirement) -> str:
    return req.evidence[0] if req.evidence else req.requirement


def _experience_evidence(candidate: CandidateProfile) -> Optional[str]:
    if not candidate.experiences:
        return None
    first = candidate.experiences[0]
    return f"{first.company} - {first.title} ({first.duration})"
