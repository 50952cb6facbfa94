from __future__ import annotations

import pytest

from jobfill.db.repositories import Repository
from jobfill.db.session import SessionLocal

PAYLOAD = {
    "full_name": "Jordan Avery",
    "email": "jordan.avery@example.com",
    "phone": "555-010-2030",
    "requires_sponsorship": "No",
    "years_dotnet": 8,
    "summary": "Backend engineer.",
    "is_default": True,
    "skills": ["C#", {"name": "Azure Functions", "category": "Cloud"}],
    "experience": [
        {"title": "Senior Engineer", "company": "Northwind", "duration": "2019-2024"},
        {"title": "Engineer", "company": "Contoso"},
    ],
    "education": [{"institution": "UT Austin", "degree": "BSc", "field": "CS"}],
    "resume_variants": ["resume_backend.pdf", "resume_cloud.pdf"],
    "common_answers": {"salary_expectation": "150000"},
}


def test_import_and_load_applicant_profile() -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        profile = repo.import_profile(PAYLOAD)
        loaded = repo.load_applicant_profile()

    assert profile.is_default
    assert loaded is not None
    assert loaded.full_name == "Jordan Avery"
    assert loaded.years_dotnet == "8"
    assert [skill.category for skill in loaded.skills] == ["Other", "Cloud"]
    assert [item.company for item in loaded.experience] == ["Northwind", "Contoso"]
    assert loaded.resume_variants == ["resume_backend.pdf", "resume_cloud.pdf"]
    assert loaded.common_answers == {"salary_expectation": "150000"}
    assert "Senior Engineer at Northwind (2019-2024)" in loaded.resume_content()


def test_default_profile_is_unique() -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        first = repo.create_profile({"full_name": "First"}, is_default=True)
        second = repo.create_profile({"full_name": "Second"}, is_default=True)

        db.refresh(first)
        assert not first.is_default
        assert repo.get_default_profile().id == second.id


def test_common_answers_upsert() -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        profile = repo.create_profile({"full_name": "Jordan Avery"})

        repo.set_common_answer(profile.id, "salary_expectation", "140000")
        repo.set_common_answer(profile.id, "salary_expectation", "150000")
        assert repo.load_applicant_profile(profile.id).common_answers == {"salary_expectation": "150000"}


@pytest.mark.parametrize(
    "broken",
    [
        {"skills": [{"category": "Cloud"}]},
        {"experience": [{"title": "Engineer"}]},
        {"education": [{"degree": "BSc"}]},
    ],
)
def test_failed_import_leaves_no_profile_and_keeps_default(broken: dict) -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        original = repo.import_profile(PAYLOAD)

        with pytest.raises(KeyError):
            repo.import_profile(
                {"full_name": "Half Made", "is_default": True, "common_answers": {"salary_expectation": "1"}, **broken}
            )

        assert [(item.full_name, item.is_default) for item in repo.list_profiles()] == [("Jordan Avery", True)]
        assert repo.get_default_profile().id == original.id
        assert repo.load_applicant_profile().common_answers == {"salary_expectation": "150000"}


def test_missing_profile_loads_as_none() -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        assert repo.load_applicant_profile() is None
        assert repo.load_applicant_profile(999) is None
