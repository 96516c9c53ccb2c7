"""
Regole di implicazione tra skill.

Una regola dice che chi conosce uno dei `triggers` possiede (con una certa
confidenza) anche le skill in `implies`. Il set di regole e versionato: la
versione finisce nelle chiavi della cache LLM e nei metadati del report.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ImplicationRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    triggers: List[str]
    implies: List[str]
    confidence: float = Field(default=0.75, gt=0.0, le=1.0)
    evidence_template: str = "{trigger} implica la conoscenza di {implied}"
    priority: int = 10          # piu basso = vince in caso di id duplicato

    def render_evidence(self, trigger: str, implied: str) -> str:
        return self.evidence_template.replace("{trigger}", trigger).replace("{implied}", implied)


class LLMFallbackSettings(BaseModel):
    enabled: bool = True
    min_confidence: float = Field(default=0.60, ge=0.0, le=1.0)
    cache_ttl_days: int = 7
    prompt_template: Optional[str] = None


class RuleSettings(BaseModel):
    default_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    enable_reverse_mapping: bool = True
    allow_user_override: bool = True
    llm_fallback: LLMFallbackSettings = LLMFallbackSettings()


class ImplicationRuleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = "1.0.0"
    rules: List[ImplicationRule] = []
    settings: RuleSettings = RuleSettings()


def merge_rule_sets(
    base: ImplicationRuleSet,
    overrides: ImplicationRuleSet,
    allow_override: Optional[bool] = None,
) -> ImplicationRuleSet:
    """
    Unisce due set di regole senza modificarli.

    Regole con lo stesso id: se l'override e permesso vince quella con
    priority piu bassa (a parita vince l'override), altrimenti resta la base.
    Le regole senza id vengono sempre aggiunte. Il risultato e ordinato per
    priority (ordinamento stabile).

    Args:
        base: Set di regole di partenza
        overrides: Regole dell'utente
        allow_override: Se None usa `base.settings.allow_user_override`

    Returns:
        Nuovo ImplicationRuleSet
    """
    if allow_override is None:
        allow_override = base.settings.allow_user_override

    by_id = {}
    anonymous: List[ImplicationRule] = []

    for rule in base.rules:
        if rule.id is None:
            anonymous.append(rule)
        else:
            by_id[rule.id] = rule

    for rule in overrides.rules:
        if rule.id is None:
            anonymous.append(rule)
            continue
        current = by_id.get(rule.id)
        if current is None:
            by_id[rule.id] = rule
        elif allow_override and rule.priority <= current.priority:
            by_id[rule.id] = rule

    merged = sorted(list(by_id.values()) + anonymous, key=lambda r: r.priority)

    version = base.version
    if overrides.rules and overrides.version != base.version:
        version = f"{base.version}+{overrides.version}"

    return ImplicationRuleSet(version=version, rules=merged, settings=base.settings)
