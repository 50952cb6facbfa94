from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobfill.fields.canonical import CanonicalKey, coerce_key, is_canonical_key

ResolutionSource = Literal["heuristic", "cache", "semantic", "none"]
FailureStage = Literal["detection", "smoke_test", "field_fill", "resume_upload", "submit"]
ApplicationState = Literal["detected", "smoke_passed", "filled", "submitted", "failed"]


def _check_confidence(value: float) -> float:
    if value < 0 or value > 1:
        raise ValueError("confidence must be between 0 and 1")
    return value


class LabelResolution(BaseModel):
    label: str
    key: CanonicalKey = "unknown"
    confidence: float = 0.0
    source: ResolutionSource = "none"

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        return _check_confidence(value)


class CachedResolution(BaseModel):
    label: str
    key: CanonicalKey
    confidence: float
    locator: str = ""
    success_count: int = 0
    failure_count: int = 0

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        return _check_confidence(value)


class LabelMapping(BaseModel):
    label: str
    key: str

    @property
    def canonical_key(self) -> CanonicalKey:
        return coerce_key(self.key)


class MappingOutput(BaseModel):
    mappings: list[LabelMapping]


class FieldPolicy(BaseModel):
    max_length: int | None = None
    strip_emoji: bool = False
    allowed_values: list[str] | None = None

    @field_validator("max_length")
    @classmethod
    def validate_max_length(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("max_length must be positive")
        return value


class AnswersPolicy(BaseModel):
    fields: dict[str, FieldPolicy] = Field(default_factory=dict)


class AnswerSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    answers: dict[str, str] = Field(default_factory=dict)
    resume_variant: str = ""

    @field_validator("answers")
    @classmethod
    def validate_keys(cls, value: dict[str, str]) -> dict[str, str]:
        invalid = sorted(key for key in value if not is_canonical_key(key) or key == "unknown")
        if invalid:
            raise ValueError(f"answers contain non-canonical keys: {invalid}")
        return value

    def get(self, key: str) -> str:
        return self.answers.get(key, "")


class SkillEntry(BaseModel):
    name: str
    category: str = "Other"


class ExperienceEntry(BaseModel):
    title: str
    company: str
    duration: str = ""
    description: str = ""
    technologies: str = ""


class EducationEntry(BaseModel):
    institution: str
    degree: str = ""
    field: str = ""


class ApplicantProfile(BaseModel):
    full_name: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""
    linkedin_url: str = ""
    us_timezone: str = ""
    work_authorization: str = ""
    requires_sponsorship: str = "No"
    years_dotnet: str = ""
    years_azure: str = ""
    summary: str = ""
    resume_variants: list[str] = Field(default_factory=list)
    skills: list[SkillEntry] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    common_answers: dict[str, str] = Field(default_factory=dict)

    def resume_content(self) -> str:
        parts: list[str] = []

        if self.skills:
            by_category: dict[str, list[str]] = {}
            for skill in self.skills:
                by_category.setdefault(skill.category or "Other", []).append(skill.name)
            parts.append("[SKILLS]")
            parts.extend(f"{category}: {', '.join(names)}" for category, names in by_category.items())

        if self.experience:
            parts.append("\n[EXPERIENCE]")
            for item in self.experience:
                duration = f" ({item.duration})" if item.duration else ""
                parts.append(f"{item.title} at {item.company}{duration}")
                if item.description:
                    parts.append(item.description)
                if item.technologies:
                    parts.append(f"Technologies: {item.technologies}")

        if self.education:
            parts.append("\n[EDUCATION]")
            for item in self.education:
                parts.append(f"{item.degree} {item.field} - {item.institution}".strip())

        return "\n".join(parts)


class AdapterResult(BaseModel):
    success: bool
    platform: str
    state: ApplicationState
    failed_stage: FailureStage | None = None
    message: str = ""
    filled_fields: list[str] = Field(default_factory=list)
    skipped_fields: list[str] = Field(default_factory=list)


class ModelResponse(BaseModel):
    content: str
    provider: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)
