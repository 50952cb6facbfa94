from __future__ import annotations

from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from jobfill.db.models import CommonAnswer, Education, Experience, Profile, ResumeVariant, Skill
from jobfill.types import ApplicantProfile, EducationEntry, ExperienceEntry, SkillEntry

PROFILE_FIELDS = (
    "full_name",
    "first_name",
    "last_name",
    "email",
    "phone",
    "city",
    "linkedin_url",
    "us_timezone",
    "work_authorization",
    "requires_sponsorship",
    "years_dotnet",
    "years_azure",
    "summary",
)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_profile(self, values: dict[str, Any], *, is_default: bool = False) -> Profile:
        profile = self._add_profile(values, is_default=is_default)
        self.session.commit()
        self.session.refresh(profile)
        return profile

    def get_profile(self, profile_id: int) -> Profile | None:
        return self.session.get(Profile, profile_id)

    def list_profiles(self) -> list[Profile]:
        return list(self.session.scalars(select(Profile).order_by(Profile.id.desc())).all())

    def get_default_profile(self) -> Profile | None:
        statement = select(Profile).order_by(Profile.is_default.desc(), Profile.id.asc()).limit(1)
        return self.session.scalar(statement)

    def import_profile(self, payload: dict[str, Any]) -> Profile:
        """Create a profile with its resume data from an exported JSON document.

        The import is all or nothing: a malformed child entry rolls back the
        profile and leaves the previous default in place.
        """
        try:
            profile = self._add_profile(payload, is_default=bool(payload.get("is_default", False)))

            for skill in payload.get("skills", []):
                if isinstance(skill, str):
                    skill = {"name": skill}
                self.session.add(
                    Skill(profile_id=profile.id, name=skill["name"], category=skill.get("category") or "Other")
                )

            for index, item in enumerate(payload.get("experience", [])):
                self.session.add(
                    Experience(
                        profile_id=profile.id,
                        title=item["title"],
                        company=item["company"],
                        duration=item.get("duration", ""),
                        description=item.get("description", ""),
                        technologies=item.get("technologies", ""),
                        sort_order=index,
                    )
                )

            for item in payload.get("education", []):
                self.session.add(
                    Education(
                        profile_id=profile.id,
                        institution=item["institution"],
                        degree=item.get("degree", ""),
                        field=item.get("field", ""),
                    )
                )

            for index, filename in enumerate(payload.get("resume_variants", [])):
                self.session.add(ResumeVariant(profile_id=profile.id, filename=filename, sort_order=index))

            for question_key, answer in (payload.get("common_answers") or {}).items():
                self._upsert_common_answer(profile.id, question_key, str(answer))

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(profile)
        return profile

    def set_common_answer(self, profile_id: int, question_key: str, answer_text: str) -> CommonAnswer:
        obj = self._upsert_common_answer(profile_id, question_key, answer_text)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def _add_profile(self, values: dict[str, Any], *, is_default: bool) -> Profile:
        if is_default:
            for existing in self.session.scalars(select(Profile).where(Profile.is_default.is_(True))):
                existing.is_default = False

        profile = Profile(
            **{field: str(values[field]) for field in PROFILE_FIELDS if values.get(field) is not None},
            is_default=is_default,
        )
        self.session.add(profile)
        self.session.flush()
        return profile

    def _upsert_common_answer(self, profile_id: int, question_key: str, answer_text: str) -> CommonAnswer:
        existing = self.session.scalar(
            select(CommonAnswer).where(
                and_(CommonAnswer.profile_id == profile_id, CommonAnswer.question_key == question_key)
            )
        )
        if existing:
            existing.answer_text = answer_text
            return existing

        obj = CommonAnswer(profile_id=profile_id, question_key=question_key, answer_text=answer_text)
        self.session.add(obj)
        self.session.flush()
        return obj

    def load_applicant_profile(self, profile_id: int | None = None) -> ApplicantProfile | None:
        profile = self.get_profile(profile_id) if profile_id is not None else self.get_default_profile()
        if profile is None:
            return None

        skills = self.session.scalars(
            select(Skill).where(Skill.profile_id == profile.id).order_by(Skill.id.asc())
        ).all()
        experience = self.session.scalars(
            select(Experience).where(Experience.profile_id == profile.id).order_by(Experience.sort_order.asc())
        ).all()
        education = self.session.scalars(
            select(Education).where(Education.profile_id == profile.id).order_by(Education.id.asc())
        ).all()
        variants = self.session.scalars(
            select(ResumeVariant)
            .where(ResumeVariant.profile_id == profile.id)
            .order_by(ResumeVariant.sort_order.asc())
        ).all()
        answers = self.session.scalars(select(CommonAnswer).where(CommonAnswer.profile_id == profile.id)).all()

        return ApplicantProfile(
            **{field: getattr(profile, field) for field in PROFILE_FIELDS},
            resume_variants=[variant.filename for variant in variants],
            skills=[SkillEntry(name=skill.name, category=skill.category) for skill in skills],
            experience=[
                ExperienceEntry(
                    title=item.title,
                    company=item.company,
                    duration=item.duration,
                    description=item.description,
                    technologies=item.technologies,
                )
                for item in experience
            ],
            education=[
                EducationEntry(institution=item.institution, degree=item.degree, field=item.field)
                for item in education
            ],
            common_answers={answer.question_key: answer.answer_text for answer in answers},
        )
