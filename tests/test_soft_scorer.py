"""
Tests for the soft scoring dimensions and the weighted final score.
"""

import pytest
from conftest import make_candidate, make_job, preferred_req, skill_req

from jobfit.agents.soft_scorer import SoftScorer, round_half_up
from jobfit.models.candidate import Experience, Project
from jobfit.models.match_result import MatchLevel, ScoreDetail


@pytest.fixture
def make_scorer(resolver, make_engine, config):
    def _make(rules=None) -> SoftScorer:
        return SoftScorer(skill_resolver=resolver, implication_engine=make_engine(rules), config=config)
    return _make


def _detail(dimension, score, weight):
    return ScoreDetail(dimension=dimension, score=score, weight=weight, weighted_score=score * weight)


class TestRounding:
    """Half-up rounding of scores."""

    @pytest.mark.parametrize("value,expected", [
        (74.5, 75),
        (74.49, 74),
        (2.5, 3),
        (0.5, 1),
        (0.0, 0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestSkillScore:
    """Coverage of required skills."""

    def test_full_coverage(self, make_scorer):
        candidate = make_candidate(["python3", "Docker"])
        job = make_job([skill_req("Python"), skill_req("Docker")])
        detail = make_scorer().score_skills(candidate, job)
        assert detail.score == 100
        assert all(i.status == "matched" for i in detail.items)
        assert detail.weighted_score == pytest.approx(60.0)

    def test_inferred_skill_scores_80_percent(self, make_scorer, django_rules):
        """Una skill inferita da regola vale base * 0.8."""
        detail = make_scorer(django_rules).score_skills(make_candidate(["Django"]), make_job([skill_req("Python")]))
        assert detail.score == 80
        item = detail.items[0]
        assert item.status == "partial"
        assert item.points == pytest.approx(8.0)
        assert item.evidence == "Django implica la conoscenza di Python"

    def test_same_category_scores_half(self, make_scorer):
        """MySQL per PostgreSQL: stessa categoria, meta punteggio."""
        detail = make_scorer().score_skills(make_candidate(["MySQL"]), make_job([skill_req("PostgreSQL")]))
        assert detail.score == 50
        assert detail.items[0].status == "partial"

    def test_missing_skill(self, make_scorer):
        detail = make_scorer().score_skills(make_candidate(["Python"]), make_job([skill_req("Rust")]))
        assert detail.score == 0
        assert detail.items[0].status == "missing"

    def test_no_required_skills(self, make_scorer):
        assert make_scorer().score_skills(make_candidate(["Python"]), make_job()).score == 0

    def test_duplicate_requirements_counted_once(self, make_scorer):
        """"Python" e "py" sono la stessa skill standard."""
        job = make_job([skill_req("Python"), skill_req("py"), skill_req("Rust")])
        detail = make_scorer().score_skills(make_candidate(["Python"]), job)
        assert len(detail.items) == 2
        assert detail.score == 50


class TestExperienceScore:
    """Mean of industry, project and depth heuristics."""

    def test_defaults_without_text(self, make_scorer):
        detail = make_scorer().score_experience(make_candidate(), make_job())
        assert [i.points for i in detail.items] == [50, 30, 20]
        assert detail.score == 33

    def test_with_texts_and_projects(self, make_scorer):
        candidate = make_candidate(
            original_text="Esperienza in fintech e banking",
            experiences=[
                Experience(company="Acme", highlights=["a", "b", "c"]),
                Experience(company="Beta", highlights=["d", "e", "f"]),
            ],
            projects=[Project(name="Core", tech_stack=["Kafka"], achievements=["Migrazione a microservices"])],
        )
        job = make_job(original_text="Piattaforma fintech basata su microservices")
        detail = make_scorer().score_experience(candidate, job)
        assert [i.points for i in detail.items] == [65, 50, 70]
        assert [i.status for i in detail.items] == ["partial", "partial", "matched"]
        assert detail.score == 61


class TestBonusScore:
    """Preferred skills and expert-level strengths."""

    def test_default_when_nothing_to_score(self, make_scorer):
        assert make_scorer().score_bonus(make_candidate(["Python"]), make_job()).score == 50

    def test_preferred_skill_owned(self, make_scorer):
        job = make_job(soft=[preferred_req("Kubernetes", weight="bonus")])
        detail = make_scorer().score_bonus(make_candidate(["k8s"]), job)
        assert detail.score == 100
        assert detail.items[0].max_points == 15

    def test_expert_skills(self, make_scorer):
        """Una skill da esperto: 5 punti su 20."""
        detail = make_scorer().score_bonus(make_candidate([("Python", "expert")]), make_job())
        assert detail.score == 25

    def test_mixed(self, make_scorer):
        job = make_job(soft=[preferred_req("React"), preferred_req("AWS", weight="bonus")])
        candidate = make_candidate([("React", "精通"), ("Python", "expert")])
        detail = make_scorer().score_bonus(candidate, job)
        # React 10/10, AWS 0/15, esperti 10/20 -> 20/45
        assert detail.score == 44


class TestCombine:
    """Weighted final score and match level."""

    def test_weighted_sum_and_level(self, make_scorer):
        """80/70/50 con pesi 0.6/0.3/0.1 -> 74, livello C."""
        result = make_scorer().combine(
            _detail("skill", 80, 0.6),
            _detail("experience", 70, 0.3),
            _detail("bonus", 50, 0.1),
        )
        assert result.overall.final_score == 74
        assert result.overall.match_level == MatchLevel.C
        assert result.overall.formula == "skill*0.6 + experience*0.3 + bonus*0.1"
        assert result.overall.calculation == "80*0.6 + 70*0.3 + 50*0.1 = 74.0"

    def test_calculation_shows_exact_weights(self, make_scorer):
        """Pesi con due decimali compaiono senza arrotondamenti."""
        result = make_scorer().combine(
            _detail("skill", 80, 0.25),
            _detail("experience", 60, 0.5),
            _detail("bonus", 40, 0.25),
        )
        assert result.overall.formula == "skill*0.25 + experience*0.5 + bonus*0.25"
        assert result.overall.calculation == "80*0.25 + 60*0.5 + 40*0.25 = 60.0"
        assert result.overall.final_score == 60

    @pytest.mark.parametrize("score,level", [
        (100, MatchLevel.A),
        (90, MatchLevel.A),
        (89, MatchLevel.B),
        (75, MatchLevel.B),
        (74, MatchLevel.C),
        (60, MatchLevel.C),
        (59, MatchLevel.D),
        (0, MatchLevel.D),
    ])
    def test_level_boundaries(self, score, level):
        assert MatchLevel.from_score(score) == level

    def test_score_end_to_end(self, make_scorer, django_rules):
        candidate = make_candidate([("Django", "expert"), "Docker"], experience_years=6)
        job = make_job([skill_req("Python")], soft=[preferred_req("Kubernetes", weight="bonus")])
        result = make_scorer(django_rules).score(candidate, job)
        assert result.skill_match.score == 80
        assert result.experience_match.score == 33
        assert result.bonus.score == 14
        assert result.overall.final_score == 59
        assert result.overall.match_level == MatchLevel.D
