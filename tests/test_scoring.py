"""Tests for internmatch.scoring — deterministic match scores, ranking and filtering."""

import pytest

from internmatch.config import ScoringConfig
from internmatch.models import (
    ExperienceEntry,
    JobListing,
    MatchResult,
    ProjectEntry,
    SkillsAnalysis,
    StructuredResume,
)
from internmatch.scoring import (
    DEFAULT_MIN_MATCH_SCORE,
    build_suggestions,
    calculate_education_fraction,
    calculate_eligibility_fraction,
    calculate_experience_fraction,
    calculate_skills_fraction,
    canonical_skill,
    degree_rank,
    filter_matches,
    rank_jobs,
    score,
    score_and_rank,
    score_components,
)


def _job(**overrides) -> JobListing:
    fields = {"company": "Globex", "title": "Backend Intern", "locations": ["Remote"], "description": "APIs"}
    fields.update(overrides)
    return JobListing(**fields)


class TestSkills:
    def test_synonyms_match(self, scoring_config: ScoringConfig):
        fraction, matched, missing = calculate_skills_fraction(
            ["ReactJS", "Golang", "Kubernetes"], ["React", "go", "Docker"], scoring_config
        )
        assert fraction == pytest.approx(2 / 3)
        assert matched == ["ReactJS", "Golang"]
        assert missing == ["Kubernetes"]

    def test_duplicate_requirements_count_once(self, scoring_config: ScoringConfig):
        fraction, matched, _ = calculate_skills_fraction(["Python", "python3", "SQL"], ["Python"], scoring_config)
        assert fraction == pytest.approx(0.5)
        assert matched == ["Python"]

    def test_no_required_skills_is_neutral(self, scoring_config: ScoringConfig):
        assert calculate_skills_fraction([], ["Python"], scoring_config) == (0.5, [], [])

    def test_canonical_skill(self, scoring_config: ScoringConfig):
        assert canonical_skill(" Node ", scoring_config) == "node.js"
        assert canonical_skill("Rust", scoring_config) == "rust"


class TestExperience:
    def test_relevant_role(self, scoring_config: ScoringConfig):
        resume = StructuredResume(experience=[ExperienceEntry(role="Backend Developer")])
        assert calculate_experience_fraction(resume, _job(), scoring_config) == 1.0

    def test_unrelated_role(self, scoring_config: ScoringConfig):
        resume = StructuredResume(experience=[ExperienceEntry(role="Barista")])
        assert calculate_experience_fraction(resume, _job(), scoring_config) == 0.6

    def test_relevant_project_stands_in(self, scoring_config: ScoringConfig):
        resume = StructuredResume(projects=[ProjectEntry(name="API", tech=["FastAPI", "Python3"])])
        job = _job(required_skills=["Python"])
        assert calculate_experience_fraction(resume, job, scoring_config) == 0.8

    def test_any_project(self, scoring_config: ScoringConfig):
        resume = StructuredResume(projects=[ProjectEntry(name="Game", description="A puzzle game", tech=["Lua"])])
        assert calculate_experience_fraction(resume, _job(required_skills=["Python"]), scoring_config) == 0.4

    def test_multi_word_skill_in_role(self, scoring_config: ScoringConfig):
        resume = StructuredResume(experience=[ExperienceEntry(role="Machine Learning Research Assistant")])
        job = _job(title="Data Intern", required_skills=["Machine Learning"])
        assert calculate_experience_fraction(resume, job, scoring_config) == 1.0

    def test_multi_word_skill_in_project_description(self, scoring_config: ScoringConfig):
        resume = StructuredResume(
            projects=[ProjectEntry(name="Shop", description="REST backend built with Spring  Boot", tech=["Java"])]
        )
        job = _job(required_skills=["Spring Boot"])
        assert calculate_experience_fraction(resume, job, scoring_config) == 0.8

    def test_multi_word_alias_in_project_description(self, scoring_config: ScoringConfig):
        resume = StructuredResume(projects=[ProjectEntry(description="Deployed on Amazon Web Services Lambda")])
        job = _job(required_skills=["AWS"])
        assert calculate_experience_fraction(resume, job, scoring_config) == 0.8

    def test_phrase_must_stand_alone(self, scoring_config: ScoringConfig):
        resume = StructuredResume(projects=[ProjectEntry(description="Notes on machine learnings")])
        job = _job(required_skills=["Machine Learning"])
        assert calculate_experience_fraction(resume, job, scoring_config) == 0.4

    def test_nothing(self, scoring_config: ScoringConfig):
        assert calculate_experience_fraction(StructuredResume(), _job(), scoring_config) == 0.0


class TestEducation:
    @pytest.mark.parametrize(
        ("degree", "expected"),
        [
            ("Bachelor's", 1),
            ("B.S. Computer Science", 1),
            ("MSc Data Science", 2),
            ("Ph.D. Physics", 3),
            ("Not specified", None),
        ],
    )
    def test_degree_rank(self, scoring_config: ScoringConfig, degree: str, expected: int | None):
        assert degree_rank(degree, scoring_config) == expected

    def test_no_requirement_uses_gpa_only(self, scoring_config: ScoringConfig):
        fraction, note = calculate_education_fraction(StructuredResume(gpa=4.0), _job(), scoring_config)
        assert fraction == pytest.approx(1.0)
        assert note is None

    def test_gpa_absent(self, scoring_config: ScoringConfig):
        fraction, _ = calculate_education_fraction(StructuredResume(), _job(), scoring_config)
        assert fraction == pytest.approx(0.9)

    def test_one_level_below(self, scoring_config: ScoringConfig):
        resume = StructuredResume(degree="Bachelor's", gpa=2.0)
        fraction, note = calculate_education_fraction(resume, _job(degree_requirement="MASTER"), scoring_config)
        assert fraction == pytest.approx(0.5 * 0.9)
        assert "Master" in note

    def test_two_levels_below(self, scoring_config: ScoringConfig):
        resume = StructuredResume(degree="Bachelor's", gpa=4.0)
        fraction, _ = calculate_education_fraction(resume, _job(degree_requirement="PHD"), scoring_config)
        assert fraction == 0.0

    def test_unknown_degree(self, scoring_config: ScoringConfig):
        fraction, note = calculate_education_fraction(
            StructuredResume(), _job(degree_requirement="BACHELOR"), scoring_config
        )
        assert fraction == pytest.approx(0.25 * 0.9)
        assert "not stated" in note


class TestEligibility:
    def test_everything_aligned(self):
        resume = StructuredResume(graduation_date="2026-05", work_authorization="US_CITIZEN")
        job = _job(required_grad_year=2026, sponsorship_available=False)
        fraction, notes = calculate_eligibility_fraction(resume, job)
        assert fraction == 1.0
        assert notes == []

    def test_needs_sponsorship_without_it(self):
        resume = StructuredResume(graduation_date="2026-05", work_authorization="NEEDS_VISA")
        job = _job(required_grad_year=2026, sponsorship_available=False)
        fraction, notes = calculate_eligibility_fraction(resume, job)
        assert fraction == 0.5
        assert any("sponsorship" in n for n in notes)

    def test_sponsorship_offered(self):
        resume = StructuredResume(work_authorization="NEEDS_SPONSORSHIP")
        fraction, _ = calculate_eligibility_fraction(resume, _job(sponsorship_available=True))
        assert fraction == 1.0

    def test_unknown_grad_year(self):
        fraction, notes = calculate_eligibility_fraction(StructuredResume(), _job(required_grad_year=2027))
        assert fraction == pytest.approx(0.75)
        assert "2027" in notes[0]

    def test_wrong_grad_year(self):
        resume = StructuredResume(graduation_date="2024-12")
        fraction, notes = calculate_eligibility_fraction(resume, _job(required_grad_year=2026))
        assert fraction == 0.5
        assert "2024" in notes[0]


class TestScore:
    def test_strong_match(self, sample_resume: StructuredResume, sample_job: JobListing):
        breakdown = score_components(sample_resume, sample_job)
        assert breakdown.matching_skills == ["Python", "React"]
        assert breakdown.missing_skills == ["Docker"]
        assert breakdown.skills == pytest.approx(26.67)
        assert breakdown.experience == 25
        assert breakdown.education == pytest.approx(19.6)
        assert breakdown.eligibility == 15
        assert breakdown.total == 86

    def test_deterministic(self, sample_resume: StructuredResume, sample_job: JobListing):
        assert len({score(sample_resume, sample_job) for _ in range(5)}) == 1

    def test_no_overlap_is_low_but_not_negative(self):
        resume = StructuredResume(skills=["Ruby"], degree="Bachelor's", graduation_date="2024-05")
        job = _job(required_skills=["Python", "C++"], degree_requirement="PHD", required_grad_year=2026)

        breakdown = score_components(resume, job)

        assert breakdown.skills == 0
        assert breakdown.experience == 0
        assert breakdown.education == 0
        assert 0 <= breakdown.total <= breakdown.eligibility + 1
        assert breakdown.total < DEFAULT_MIN_MATCH_SCORE

    @pytest.mark.parametrize(
        "resume",
        [
            StructuredResume(),
            StructuredResume(skills=["Python"], gpa=4.0, degree="PhD", graduation_date="2026"),
            StructuredResume(work_authorization="NEEDS_VISA", projects=[ProjectEntry(tech=["Go"])]),
        ],
    )
    @pytest.mark.parametrize(
        "job",
        [
            _job(),
            _job(required_skills=["Python", "Go"], degree_requirement="MASTER", required_grad_year=2026),
            _job(sponsorship_available=False, required_skills=["Haskell"]),
        ],
    )
    def test_components_within_weights(self, resume: StructuredResume, job: JobListing):
        breakdown = score_components(resume, job)
        assert 0 <= breakdown.skills <= 40
        assert 0 <= breakdown.experience <= 25
        assert 0 <= breakdown.education <= 20
        assert 0 <= breakdown.eligibility <= 15
        assert 0 <= breakdown.total <= 100

    def test_custom_weights(self, sample_resume: StructuredResume, sample_job: JobListing):
        config = ScoringConfig(weights={"skills": 100, "experience": 0, "education": 0, "eligibility": 0})
        assert score(sample_resume, sample_job, config) == 67


class TestRanking:
    def test_best_first(self, sample_resume: StructuredResume):
        weak = _job(id="weak", required_skills=["Haskell", "OCaml"], degree_requirement="PHD")
        strong = _job(id="strong", required_skills=["Python", "React"])

        ranked = score_and_rank(sample_resume, [weak, strong])

        assert [job.id for job, _ in ranked] == ["strong", "weak"]

    def test_ties_keep_input_order(self, sample_resume: StructuredResume):
        jobs = [_job(id=f"same-{i}", required_skills=["Python"]) for i in range(5)]
        ranked = score_and_rank(sample_resume, jobs)
        assert [job.id for job, _ in ranked] == [job.id for job in jobs]

    def test_rank_jobs_builds_results(self, sample_resume: StructuredResume, sample_job: JobListing):
        results = rank_jobs(sample_resume, [sample_job], resume_id="r1")
        assert len(results) == 1
        assert results[0].resume_id == "r1"
        assert results[0].job_id == "job-1"
        assert results[0].score == 86
        assert "Docker" in results[0].suggestions

    def test_empty(self, sample_resume: StructuredResume):
        assert score_and_rank(sample_resume, []) == []


class TestFilterMatches:
    def _result(self, job_id: str, value: int) -> MatchResult:
        return MatchResult(resume_id="r", job_id=job_id, score=value)

    def test_default_threshold(self):
        results = [self._result("a", 90), self._result("b", 74), self._result("c", 75)]
        assert [r.job_id for r in filter_matches(results)] == ["a", "c"]

    def test_custom_threshold(self):
        results = [self._result("a", 40), self._result("b", 10)]
        assert [r.job_id for r in filter_matches(results, min_score=20)] == ["a"]


class TestSuggestions:
    def test_analysis_comes_first(self, sample_resume: StructuredResume, sample_job: JobListing):
        analysis = SkillsAnalysis(
            overall_fit="Good fit.",
            improvement_suggestions=[
                {"category": "skills", "priority": "high", "suggestion": "Learn Docker", "rationale": "Listed"}
            ],
        )
        text = build_suggestions(score_components(sample_resume, sample_job), analysis)
        assert text.startswith("Good fit. Top suggestion: Learn Docker")
        assert "Missing required skills: Docker." in text

    def test_perfect_match(self):
        resume = StructuredResume(skills=["Python"], experience=[ExperienceEntry(role="Backend Engineer")], gpa=4.0)
        breakdown = score_components(resume, _job(required_skills=["Python"]))
        assert build_suggestions(breakdown) == "Strong match on every scored criterion."
