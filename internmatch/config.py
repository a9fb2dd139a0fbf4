"""Runtime settings and the match-scoring configuration tables.

Settings come from the environment (a ``.env`` file is loaded by the CLI).
Scoring weights and the skill-synonym table are defaults that can be
overridden with a JSON file; they are not empirically tuned.
"""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

DEFAULT_MODEL = "gemini-2.5-flash"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class Settings(BaseModel):
    """Pipeline limits and external-service configuration."""

    google_api_key: str = Field(default="", repr=False)
    model: str = DEFAULT_MODEL
    max_document_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    min_document_bytes: int = Field(default=100, ge=1)
    min_text_chars: int = Field(default=100, ge=1)
    llm_timeout: float = Field(default=60.0, gt=0, description="Seconds before a generative call is abandoned")
    max_concurrency: int = Field(default=5, ge=1, description="Concurrent generative calls per service")
    max_retries: int = Field(default=3, ge=1)
    scoring_config_path: Path | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        config_path = os.getenv("INTERNMATCH_SCORING_CONFIG")
        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY", ""),
            model=os.getenv("INTERNMATCH_MODEL") or DEFAULT_MODEL,
            max_document_bytes=_env_int("INTERNMATCH_MAX_DOCUMENT_BYTES", 10 * 1024 * 1024),
            min_document_bytes=_env_int("INTERNMATCH_MIN_DOCUMENT_BYTES", 100),
            min_text_chars=_env_int("INTERNMATCH_MIN_TEXT_CHARS", 100),
            llm_timeout=_env_float("INTERNMATCH_LLM_TIMEOUT", 60.0),
            max_concurrency=_env_int("INTERNMATCH_MAX_CONCURRENCY", 5),
            max_retries=_env_int("INTERNMATCH_MAX_RETRIES", 3),
            scoring_config_path=Path(config_path) if config_path else None,
        )


# Component weights (must sum to 100)
DEFAULT_WEIGHTS = {
    "skills": 40,
    "experience": 25,
    "education": 20,
    "eligibility": 15,
}

# alias (lower-case) -> canonical name
DEFAULT_SKILL_SYNONYMS = {
    "react.js": "react",
    "reactjs": "react",
    "react js": "react",
    "node": "node.js",
    "nodejs": "node.js",
    "node js": "node.js",
    "js": "javascript",
    "ecmascript": "javascript",
    "ts": "typescript",
    "python3": "python",
    "py": "python",
    "golang": "go",
    "postgres": "postgresql",
    "amazon web services": "aws",
    "microsoft azure": "azure",
    "google cloud": "gcp",
    "google cloud platform": "gcp",
    "k8s": "kubernetes",
    "sklearn": "scikit-learn",
    "scikit learn": "scikit-learn",
    "tf": "tensorflow",
    "next": "next.js",
    "nextjs": "next.js",
    "vue.js": "vue",
    "vuejs": "vue",
    "c plus plus": "c++",
    "cpp": "c++",
    "csharp": "c#",
    "ml": "machine learning",
}

# degree rank; free-text resume degrees are matched on these keywords
DEGREE_RANKS = {
    "BACHELOR": 1,
    "MASTER": 2,
    "PHD": 3,
}

DEFAULT_DEGREE_KEYWORDS = {
    "phd": "PHD",
    "ph.d": "PHD",
    "doctor": "PHD",
    "master": "MASTER",
    "msc": "MASTER",
    "m.s.": "MASTER",
    "meng": "MASTER",
    "mba": "MASTER",
    "bachelor": "BACHELOR",
    "bsc": "BACHELOR",
    "b.s.": "BACHELOR",
    "b.a.": "BACHELOR",
    "beng": "BACHELOR",
    "b.e.": "BACHELOR",
    "b.tech": "BACHELOR",
}


class ScoringConfig(BaseModel):
    """Weights and lookup tables for the deterministic match scorer."""

    weights: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    skill_synonyms: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SKILL_SYNONYMS))
    degree_keywords: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_DEGREE_KEYWORDS))
    # fraction of the skills weight earned when a job lists no required skills
    neutral_skill_fraction: float = Field(default=0.5, ge=0.0, le=1.0)
    relevant_experience_credit: float = Field(default=1.0, ge=0.0, le=1.0)
    any_experience_credit: float = Field(default=0.6, ge=0.0, le=1.0)
    relevant_project_credit: float = Field(default=0.8, ge=0.0, le=1.0)
    any_project_credit: float = Field(default=0.4, ge=0.0, le=1.0)
    gpa_absent_factor: float = Field(default=0.9, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_weights(self) -> "ScoringConfig":
        if set(self.weights) != set(DEFAULT_WEIGHTS):
            raise ValueError(f"weights must define exactly {sorted(DEFAULT_WEIGHTS)}")
        if any(w < 0 for w in self.weights.values()):
            raise ValueError("weights must be non-negative")
        if sum(self.weights.values()) != 100:
            raise ValueError(f"weights must sum to 100, got {sum(self.weights.values())}")
        self.skill_synonyms = {k.lower().strip(): v.lower().strip() for k, v in self.skill_synonyms.items()}
        return self

    @classmethod
    def from_file(cls, path: str | Path) -> "ScoringConfig":
        """Load overrides from JSON; omitted keys keep their defaults."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"Could not read scoring config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Scoring config {path} must contain a JSON object")
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ValueError(f"Invalid scoring config {path}: {exc}") from exc


def load_scoring_config(settings: Settings) -> ScoringConfig:
    if settings.scoring_config_path is None:
        return ScoringConfig()
    return ScoringConfig.from_file(settings.scoring_config_path)
