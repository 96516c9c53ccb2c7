"""
Implication Engine
Decide se le skill di un candidato implicano una skill richiesta.

Livelli valutati in ordine, vince il primo che trova un match:
1. DIRECT  - sottostringa case-insensitive in una delle due direzioni
2. RULE    - regole di implicazione (trigger -> implies, piu lookup inverso)
3. KEYWORD - parole chiave della skill richiesta contenute nella skill candidata
4. LLM     - giudizio del modello, con cache persistente e retry
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from jobfit.config import load_rule_set
from jobfit.models.rules import ImplicationRule, ImplicationRuleSet
from jobfit.services.implication_cache import ImplicationCache, make_cache_key
from jobfit.services.llm_service import LLMError, LLMService
from jobfit.services.logging_utils import print_with_prefix
from jobfit.services.retry import RetryPolicy

DIRECT_MIN_CONFIDENCE = 0.95
KEYWORD_CONFIDENCE = 0.70

_KEYWORD_SPLIT = re.compile(r"[\s,;/()（）]+")


class ImplicationTier(str, Enum):
    DIRECT = "DIRECT"
    RULE = "RULE"
    KEYWORD = "KEYWORD"
    LLM = "LLM"
    NONE = "NONE"


_EVIDENCE_SUFFIX = {
    ImplicationTier.RULE: "(regola)",
    ImplicationTier.KEYWORD: "(parola chiave)",
    ImplicationTier.LLM: "(inferenza AI)",
}


@dataclass(frozen=True)
class ImplicationResult:
    matched: bool
    tier: ImplicationTier
    matching_skills: Tuple[str, ...] = field(default_factory=tuple)
    confidence: float = 0.0
    evidence: Optional[str] = None

    @classmethod
    def no_match(cls) -> "ImplicationResult":
        return cls(matched=False, tier=ImplicationTier.NONE)

    @property
    def is_inferred(self) -> bool:
        return self.matched and self.tier != ImplicationTier.DIRECT

    def describe(self) -> Optional[str]:
        """Evidenza esplicita, oppure skill coinvolte + etichetta del livello."""
        if self.evidence:
            return self.evidence
        if not self.matching_skills:
            return None
        if self.tier == ImplicationTier.DIRECT:
            return self.matching_skills[0]
        return f"{', '.join(self.matching_skills)} {_EVIDENCE_SUFFIX.get(self.tier, '(inferito)')}"


def extract_keywords(skill: str) -> List[str]:
    return [t for t in _KEYWORD_SPLIT.split(skill) if len(t) >= 2]


def _substring_either_way(a: str, b: str) -> bool:
    return a in b or b in a


class ImplicationEngine:
    """
    Motore di inferenza delle skill a quattro livelli.

    Gli indici sulle regole sono costruiti una volta nel costruttore e poi
    solo letti. Il livello LLM viene usato solo se abilitato nelle
    impostazioni e se il servizio e disponibile.
    """

    def __init__(
        self,
        rule_set: Optional[ImplicationRuleSet] = None,
        llm_service: Optional[LLMService] = None,
        cache: Optional[ImplicationCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        verbose: bool = False,
    ):
        """
        Args:
            rule_set: Regole di implicazione (default: load_rule_set())
            llm_service: Servizio LLM per il livello 4 (None = livello disattivato)
            cache: Cache delle decisioni LLM (default su data/cache/implications)
            retry_policy: Policy di retry per le chiamate LLM
            verbose: Se True, stampa log
        """
        self.rule_set = rule_set if rule_set is not None else load_rule_set()
        self.settings = self.rule_set.settings
        self.llm_service = llm_service
        self.cache = cache or ImplicationCache(ttl_days=self.settings.llm_fallback.cache_ttl_days)
        self.retry_policy = retry_policy or RetryPolicy()
        self.verbose = verbose

        # trigger.lower() -> regole
        self._trigger_index: Dict[str, List[ImplicationRule]] = {}
        # implied.lower() -> [(trigger.lower(), regola)]
        self._implied_index: Dict[str, List[Tuple[str, ImplicationRule]]] = {}
        self._build_indexes()

    @property
    def rules_version(self) -> str:
        return self.rule_set.version

    @property
    def llm_enabled(self) -> bool:
        return (
            self.settings.llm_fallback.enabled
            and self.llm_service is not None
            and bool(getattr(self.llm_service, "is_available", False))
        )

    def _build_indexes(self) -> None:
        for rule in self.rule_set.rules:
            for trigger in rule.triggers:
                self._trigger_index.setdefault(trigger.lower(), []).append(rule)
                if self.settings.enable_reverse_mapping:
                    for implied in rule.implies:
                        self._implied_index.setdefault(implied.lower(), []).append((trigger.lower(), rule))
        self._log(
            f"Regole v{self.rules_version}: {len(self.rule_set.rules)} regole, "
            f"{len(self._trigger_index)} trigger"
        )

    # ═══════════════════════════════════════════════════════════════════
    # API
    # ═══════════════════════════════════════════════════════════════════

    def resolve(self, candidate_skills: List[str], required_skill: Optional[str]) -> ImplicationResult:
        """
        Verifica se `candidate_skills` implicano `required_skill`.

        Returns:
            ImplicationResult del primo livello che trova un match,
            altrimenti ImplicationResult.no_match()
        """
        candidates = [s.strip() for s in candidate_skills or [] if s and s.strip()]
        required = (required_skill or "").strip()
        if not candidates or not required:
            return ImplicationResult.no_match()

        for check in (self._check_direct, self._check_rules, self._check_keywords):
            result = check(candidates, required)
            if result.matched:
                self._log(f"{required}: {result.tier.value} via {', '.join(result.matching_skills)}")
                return result

        if self.llm_enabled:
            result = self._check_llm(candidates, required)
            if result.matched:
                self._log(f"{required}: LLM via {result.matching_skills[0]} ({result.confidence:.2f})")
            return result

        return ImplicationResult.no_match()

    def implied_skills(self, skill: str) -> List[str]:
        """Skill implicate da `skill` secondo le regole (ordine per priority)."""
        seen: List[str] = []
        for rule in self._trigger_index.get(skill.strip().lower(), []):
            for implied in rule.implies:
                if implied not in seen:
                    seen.append(implied)
        return seen

    def skills_implying(self, skill: str) -> List[str]:
        """Trigger delle regole che implicano `skill` (lookup inverso)."""
        seen: List[str] = []
        for trigger, _ in self._implied_index.get(skill.strip().lower(), []):
            if trigger not in seen:
                seen.append(trigger)
        return seen

    # ═══════════════════════════════════════════════════════════════════
    # Livelli
    # ═══════════════════════════════════════════════════════════════════

    def _check_direct(self, candidates: List[str], required: str) -> ImplicationResult:
        req_lower = required.lower()
        for skill in candidates:
            if _substring_either_way(skill.lower(), req_lower):
                return ImplicationResult(
                    matched=True,
                    tier=ImplicationTier.DIRECT,
                    matching_skills=(skill,),
                    confidence=max(self.settings.default_confidence, DIRECT_MIN_CONFIDENCE),
                    evidence=skill,
                )
        return ImplicationResult.no_match()

    def _check_rules(self, candidates: List[str], required: str) -> ImplicationResult:
        req_lower = required.lower()
        contributors: List[str] = []
        best_confidence = 0.0
        best_evidence: Optional[str] = None

        # trigger -> implies
        for skill in candidates:
            for rule in self._trigger_index.get(skill.lower(), []):
                for implied in rule.implies:
                    if not _substring_either_way(implied.lower(), req_lower):
                        continue
                    if skill not in contributors:
                        contributors.append(skill)
                    if rule.confidence > best_confidence:
                        best_confidence = rule.confidence
                        best_evidence = rule.render_evidence(skill, implied)

        # implies -> trigger: regole scritte nell'altra direzione.
        # Sostituisce confidenza/evidenza solo se strettamente maggiore.
        if self.settings.enable_reverse_mapping:
            for implied_lower, entries in self._implied_index.items():
                if not _substring_either_way(implied_lower, req_lower):
                    continue
                for trigger_lower, rule in entries:
                    for skill in candidates:
                        if not _substring_either_way(skill.lower(), trigger_lower):
                            continue
                        if skill not in contributors:
                            contributors.append(skill)
                        if rule.confidence > best_confidence:
                            best_confidence = rule.confidence
                            best_evidence = rule.render_evidence(skill, required)

        if not contributors:
            return ImplicationResult.no_match()

        return ImplicationResult(
            matched=True,
            tier=ImplicationTier.RULE,
            matching_skills=tuple(contributors),
            confidence=best_confidence or self.settings.default_confidence,
            evidence=best_evidence or f"{', '.join(contributors)} implica {required} {_EVIDENCE_SUFFIX[ImplicationTier.RULE]}",
        )

    def _check_keywords(self, candidates: List[str], required: str) -> ImplicationResult:
        keywords = [k.lower() for k in extract_keywords(required)]
        matching = [
            skill for skill in candidates
            if any(k in skill.lower() for k in keywords)
        ]
        if not matching:
            return ImplicationResult.no_match()
        return ImplicationResult(
            matched=True,
            tier=ImplicationTier.KEYWORD,
            matching_skills=tuple(matching),
            confidence=KEYWORD_CONFIDENCE,
            evidence=f"{', '.join(matching)} {_EVIDENCE_SUFFIX[ImplicationTier.KEYWORD]}",
        )

    def _check_llm(self, candidates: List[str], required: str) -> ImplicationResult:
        fallback = self.settings.llm_fallback

        for skill in candidates:
            key = make_cache_key(skill, required, self.rules_version)
            decision = self.cache.get(key)

            if decision is None:
                try:
                    decision = self.retry_policy.call(
                        self.llm_service.judge_skill_implication,
                        skill,
                        required,
                        fallback.prompt_template,
                    )
                except LLMError as e:
                    self._log(f"LLM fallito per {skill} -> {required} ({e.kind.value}): {e}")
                    continue
                try:
                    self.cache.put(key, decision, skill, required, self.rules_version)
                except OSError as e:
                    self._log(f"Cache non scrivibile per {skill} -> {required}: {e}")

            if decision.can_imply and decision.confidence >= fallback.min_confidence:
                reasoning = decision.reasoning or f"{skill} implica {required}"
                return ImplicationResult(
                    matched=True,
                    tier=ImplicationTier.LLM,
                    matching_skills=(skill,),
                    confidence=decision.confidence,
                    evidence=f"{reasoning} {_EVIDENCE_SUFFIX[ImplicationTier.LLM]}",
                )

        return ImplicationResult.no_match()

    def _log(self, message: str) -> None:
        print_with_prefix("[ImplicationEngine]", message, enabled=self.verbose)
