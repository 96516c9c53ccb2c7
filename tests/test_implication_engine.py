"""
Tests for the four-tier skill implication engine.
"""

from conftest import FakeLLMService

from jobfit.models.rules import ImplicationRule, ImplicationRuleSet, LLMFallbackSettings, RuleSettings
from jobfit.services.implication_cache import ImplicationCache
from jobfit.services.implication_engine import ImplicationEngine, ImplicationResult, ImplicationTier, extract_keywords
from jobfit.services.llm_service import LLMError, LLMErrorKind, SkillImplicationDecision


def _rules(*rules, **settings) -> ImplicationRuleSet:
    return ImplicationRuleSet(version="test-rules", rules=list(rules), settings=RuleSettings(**settings))


class TestDirectTier:
    """Case-insensitive substring match in either direction."""

    def test_substring_match(self, make_engine):
        """"Python 3" contiene "python"."""
        result = make_engine().resolve(["Python 3"], "python")
        assert result.matched
        assert result.tier == ImplicationTier.DIRECT
        assert result.matching_skills == ("Python 3",)
        assert result.confidence == 0.95
        assert not result.is_inferred

    def test_required_contains_candidate(self, make_engine):
        """Vale anche nella direzione opposta."""
        result = make_engine().resolve(["React"], "React Native")
        assert result.tier == ImplicationTier.DIRECT

    def test_empty_inputs(self, make_engine):
        """Liste vuote, voci vuote o skill richiesta vuota non producono match."""
        engine = make_engine()
        assert engine.resolve([], "Python") == ImplicationResult.no_match()
        assert not engine.resolve(["", "   "], "Python").matched
        assert not engine.resolve(["Python"], "").matched
        assert not engine.resolve(["Python"], None).matched


class TestRuleTier:
    """Forward and reverse rule lookup."""

    def test_forward_rule(self, make_engine, django_rules):
        """Django implica Python con la confidenza della regola."""
        result = make_engine(django_rules).resolve(["Django"], "Python")
        assert result.matched
        assert result.tier == ImplicationTier.RULE
        assert result.matching_skills == ("Django",)
        assert result.confidence == 0.85
        assert result.evidence == "Django implica la conoscenza di Python"
        assert result.is_inferred

    def test_reverse_rule(self, make_engine):
        """Il lookup inverso trova il trigger anche se il candidato lo scrive diversamente."""
        rules = _rules(ImplicationRule(id="r", triggers=["spring boot"], implies=["Java"], confidence=0.9))
        result = make_engine(rules).resolve(["Spring Boot 3"], "Java")
        assert result.tier == ImplicationTier.RULE
        assert result.matching_skills == ("Spring Boot 3",)
        assert result.confidence == 0.9

    def test_reverse_disabled(self, make_engine):
        """Senza reverse mapping serve il trigger esatto."""
        rules = _rules(
            ImplicationRule(id="r", triggers=["spring boot"], implies=["Java"], confidence=0.9),
            enable_reverse_mapping=False,
        )
        assert not make_engine(rules).resolve(["Spring Boot 3"], "Java").matched

    def test_best_confidence_wins(self, make_engine):
        """Con piu regole applicabili vale la confidenza piu alta."""
        rules = _rules(
            ImplicationRule(id="low", triggers=["Pandas"], implies=["Python"], confidence=0.7),
            ImplicationRule(id="high", triggers=["Django"], implies=["Python"], confidence=0.85),
        )
        result = make_engine(rules).resolve(["Pandas", "Django"], "Python")
        assert result.matching_skills == ("Pandas", "Django")
        assert result.confidence == 0.85

    def test_rule_beats_keyword(self, make_engine):
        """Se regola e parola chiave sono entrambe applicabili vince la regola."""
        rules = _rules(ImplicationRule(id="r", triggers=["Spring Boot"], implies=["Java Backend"], confidence=0.9))
        result = make_engine(rules).resolve(["Spring Boot", "Backend Dev"], "Java Backend")
        assert result.tier == ImplicationTier.RULE
        assert result.matching_skills == ("Spring Boot",)

    def test_implied_skills_and_reverse(self, make_engine, django_rules):
        engine = make_engine(django_rules)
        assert engine.implied_skills("django") == ["Python"]
        assert engine.skills_implying("Python") == ["django"]
        assert engine.rules_version == "test-1"


class TestKeywordTier:
    """Keywords of the required skill found in a candidate skill."""

    def test_keyword_match(self, make_engine):
        result = make_engine().resolve(["Backend Dev"], "Java Backend")
        assert result.tier == ImplicationTier.KEYWORD
        assert result.confidence == 0.70
        assert result.describe() == "Backend Dev (parola chiave)"

    def test_extract_keywords(self):
        """Token di almeno due caratteri, separatori comuni."""
        assert extract_keywords("CI/CD (Jenkins), Git") == ["CI", "CD", "Jenkins", "Git"]
        assert extract_keywords("C") == []


class TestLLMTier:
    """Model judgement with cache, retry and confidence threshold."""

    def test_llm_match_is_cached(self, make_engine):
        """Una seconda richiesta uguale non chiama di nuovo il modello."""
        llm = FakeLLMService(default=SkillImplicationDecision(True, 0.8, "Airflow si scrive in Python"))
        engine = make_engine(llm=llm)

        first = engine.resolve(["Airflow"], "Python")
        second = engine.resolve(["Airflow"], "Python")

        assert first.tier == ImplicationTier.LLM
        assert first.confidence == 0.8
        assert first.evidence == "Airflow si scrive in Python (inferenza AI)"
        assert second == first
        assert len(llm.calls) == 1

    def test_cache_survives_new_engine(self, make_engine):
        """La cache e su disco: un nuovo motore la riusa."""
        llm = FakeLLMService(default=SkillImplicationDecision(True, 0.8, "ok"))
        make_engine(llm=llm).resolve(["Airflow"], "Python")
        make_engine(llm=llm).resolve(["Airflow"], "Python")
        assert len(llm.calls) == 1

    def test_negative_decision_is_cached(self, make_engine):
        """Anche le risposte negative finiscono in cache."""
        llm = FakeLLMService()
        engine = make_engine(llm=llm)
        assert not engine.resolve(["Excel"], "Python").matched
        assert not engine.resolve(["Excel"], "Python").matched
        assert len(llm.calls) == 1

    def test_below_min_confidence(self, make_engine):
        """Sotto min_confidence la decisione positiva non basta."""
        llm = FakeLLMService(default=SkillImplicationDecision(True, 0.5, "forse"))
        assert not make_engine(llm=llm).resolve(["Airflow"], "Python").matched

    def test_error_skips_candidate(self, make_engine):
        """Un errore definitivo salta la skill e passa alla successiva."""
        llm = FakeLLMService(
            decisions={("Airflow", "Python"): SkillImplicationDecision(True, 0.9, "ok")},
            failing={"Excel": LLMError("bad key", LLMErrorKind.INVALID_API_KEY)},
        )
        result = make_engine(llm=llm).resolve(["Excel", "Airflow"], "Python")
        assert result.matching_skills == ("Airflow",)
        assert llm.calls == [("Excel", "Python"), ("Airflow", "Python")]

    def test_failed_call_is_not_cached(self, make_engine):
        """Dopo un errore la stessa coppia viene richiesta di nuovo."""
        llm = FakeLLMService(failing={"Excel": LLMError("bad key", LLMErrorKind.INVALID_API_KEY)})
        engine = make_engine(llm=llm)
        engine.resolve(["Excel"], "Python")
        engine.resolve(["Excel"], "Python")
        assert len(llm.calls) == 2

    def test_transient_error_is_retried(self, make_engine):
        """Un timeout viene ritentato e la seconda risposta viene usata."""
        llm = FakeLLMService(
            default=SkillImplicationDecision(True, 0.9, "ok"),
            errors=[LLMError("timeout", LLMErrorKind.REQUEST_TIMEOUT)],
        )
        result = make_engine(llm=llm).resolve(["Airflow"], "Python")
        assert result.matched
        assert len(llm.calls) == 2

    def test_disabled_fallback(self, make_engine):
        """Con llm_fallback disattivato il modello non viene mai chiamato."""
        llm = FakeLLMService(default=SkillImplicationDecision(True, 0.9, "ok"))
        rules = _rules(llm_fallback=LLMFallbackSettings(enabled=False))
        engine = make_engine(rules, llm=llm)
        assert not engine.llm_enabled
        assert not engine.resolve(["Airflow"], "Python").matched
        assert llm.calls == []

    def test_unavailable_service(self, make_engine):
        """Un servizio non disponibile disattiva il livello LLM."""
        llm = FakeLLMService(is_available=False)
        assert not make_engine(llm=llm).llm_enabled

    def test_rule_tier_skips_llm(self, make_engine, django_rules):
        """Se un livello deterministico trova il match il modello non viene chiamato."""
        llm = FakeLLMService(default=SkillImplicationDecision(True, 0.9, "ok"))
        make_engine(django_rules, llm=llm).resolve(["Django"], "Python")
        assert llm.calls == []

    def test_unwritable_cache_keeps_decision(self, tmp_path, empty_rules, no_sleep_retry):
        """Se la cache non si puo scrivere la decisione del modello vale comunque."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("", encoding="utf-8")
        llm = FakeLLMService(default=SkillImplicationDecision(True, 0.9, "ok"))
        engine = ImplicationEngine(
            rule_set=empty_rules,
            llm_service=llm,
            cache=ImplicationCache(blocker / "cache"),
            retry_policy=no_sleep_retry,
        )

        result = engine.resolve(["Airflow"], "Rust")

        assert result.matched
        assert result.tier == ImplicationTier.LLM
        assert result.confidence == 0.9
        assert blocker.is_file()
