from __future__ import annotations

import json
import logging
import re

from jobfill.core.cache import AnswerCache
from jobfill.fields.policy import load_policy, sanitize_answers
from jobfill.llm.prompts import RESUME_VARIANT_PROMPT, WHY_FIT_PROMPT
from jobfill.llm.router import TEXT_SHAPE, WHY_FIT_SHAPE, TextGenerator, generate_json
from jobfill.types import AnswersPolicy, AnswerSet, ApplicantProfile

logger = logging.getLogger(__name__)

WHY_FIT_MAX_CHARS = 400
DEFAULT_SALARY_EXPECTATION = "Open"

_VARIANT_PREFIX = re.compile(r"^(filename|resume)\s*:\s*", re.IGNORECASE)
_VARIANT_KEYS = ("filename", "name", "resume")
_SENTENCE_END = re.compile(r"[.!?](?=\s|$)")


def truncate_narrative(text: str, limit: int = WHY_FIT_MAX_CHARS) -> str:
    """Shorten ``text`` to at most ``limit`` characters, preferring a natural break.

    A sentence end (``.``, ``!`` or ``?`` followed by whitespace or the end of
    the text) in the last quarter of the window wins, then a word break in the
    last eighth, then a hard cut.
    """
    if len(text) <= limit:
        return text

    truncated = text[:limit]
    # A stop only ends a sentence when whitespace follows it, so ".NET" is not a break.
    stops = [match.start() for match in _SENTENCE_END.finditer(text) if match.start() < limit]
    last_stop = stops[-1] if stops else -1
    last_space = truncated.rfind(" ")

    if last_stop > limit * 3 // 4:
        return truncated[: last_stop + 1]
    if last_space > limit * 7 // 8:
        return truncated[:last_space]
    return truncated


def build_profile_answers(profile: ApplicantProfile) -> dict[str, str]:
    full_name = profile.full_name.strip()
    first_name = profile.first_name.strip()
    last_name = profile.last_name.strip()

    if full_name and not (first_name or last_name):
        first_name, _, last_name = full_name.partition(" ")
        last_name = last_name.strip()
    elif not full_name:
        full_name = " ".join(part for part in (first_name, last_name) if part)

    answers = {
        "full_name": full_name,
        "first_name": first_name,
        "last_name": last_name,
        "email": profile.email,
        "phone": profile.phone,
        "city": profile.city,
        "work_authorization": profile.work_authorization,
        "requires_sponsorship": profile.requires_sponsorship,
        "years_dotnet": profile.years_dotnet,
        "years_azure": profile.years_azure,
        "linkedin_url": profile.linkedin_url,
        "us_timezone": profile.us_timezone,
        "salary_expectation": profile.common_answers.get("salary_expectation") or DEFAULT_SALARY_EXPECTATION,
    }
    return {key: value for key, value in answers.items() if value}


def clean_variant_reply(reply: str) -> str:
    candidate = reply.strip()
    if candidate.startswith("{"):
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, dict):
            for key in _VARIANT_KEYS:
                if isinstance(decoded.get(key), str):
                    candidate = decoded[key]
                    break

    candidate = candidate.strip().strip("\"'`").strip()
    candidate = _VARIANT_PREFIX.sub("", candidate)
    return candidate.strip().strip("\"'`").strip()


def match_variant(reply: str, variants: list[str]) -> str | None:
    cleaned = clean_variant_reply(reply)
    if not cleaned:
        return None
    if cleaned in variants:
        return cleaned

    needle = cleaned.lower()
    for variant in variants:
        candidate = variant.lower()
        if needle in candidate or candidate in needle:
            return variant
    return None


class AnswerSynthesizer:
    """Produces one finalized, policy-compliant answer set per job and caches it."""

    def __init__(
        self,
        cache: AnswerCache,
        generator: TextGenerator | None = None,
        policy: AnswersPolicy | None = None,
    ):
        self.cache = cache
        self.generator = generator
        self.policy = policy

    def synthesize_answers(
        self,
        job_id: str,
        job_title: str,
        job_description: str,
        profile: ApplicantProfile,
    ) -> AnswerSet:
        cached = self._cached(job_id)
        if cached is not None:
            logger.info("Using cached answers for job %s", job_id)
            return cached

        answers = build_profile_answers(profile)
        resume_variant, variant_degraded = self.select_resume_variant(
            job_title, job_description, profile.resume_variants
        )
        why_fit, why_fit_degraded = self.generate_why_fit(job_title, job_description, profile)
        if why_fit:
            answers["why_fit"] = why_fit

        answer_set = sanitize_answers(
            AnswerSet(answers=answers, resume_variant=resume_variant),
            self.policy or load_policy(),
        )
        logger.info(
            "Synthesized %d answers for job %s (resume=%s)", len(answer_set.answers), job_id, resume_variant or "-"
        )
        logger.debug("why_fit for job %s: %s", job_id, answer_set.get("why_fit"))

        if variant_degraded or why_fit_degraded:
            logger.warning("Answers for job %s used fallbacks; not caching them", job_id)
            return answer_set

        try:
            self.cache.put(job_id, answer_set)
        except Exception as exc:
            logger.warning("Could not cache answers for job %s: %s", job_id, exc)
        return answer_set

    def select_resume_variant(
        self, job_title: str, job_description: str, variants: list[str]
    ) -> tuple[str, bool]:
        """Pick the variant for this job; the flag is True when the first variant was a fallback."""
        if not variants:
            return "", False
        if len(variants) == 1 or self.generator is None:
            return variants[0], False

        prompt = RESUME_VARIANT_PROMPT.format(
            job_title=job_title,
            job_description=job_description,
            variants="\n".join(f"{index}. {name}" for index, name in enumerate(variants, start=1)),
        )
        try:
            reply = self.generator.generate(prompt, TEXT_SHAPE)
        except Exception as exc:
            logger.warning("Resume variant selection failed, using %s: %s", variants[0], exc)
            return variants[0], True

        if isinstance(reply, dict):
            reply = json.dumps(reply)
        selected = match_variant(str(reply or ""), variants)
        if selected is None:
            logger.warning("Resume variant reply %r matched nothing, using %s", reply, variants[0])
            return variants[0], True
        return selected, False

    def generate_why_fit(self, job_title: str, job_description: str, profile: ApplicantProfile) -> tuple[str, bool]:
        """Return the narrative and whether generation fell back to an empty answer."""
        if self.generator is None:
            logger.warning("No text generator configured; why_fit left empty")
            return "", True

        prompt = WHY_FIT_PROMPT.format(
            profile_summary=profile.summary,
            full_name=profile.full_name,
            years_dotnet=profile.years_dotnet,
            years_azure=profile.years_azure,
            resume_content=profile.resume_content() or "(none)",
            job_title=job_title,
            job_description=job_description,
            max_chars=WHY_FIT_MAX_CHARS,
        )
        try:
            payload = generate_json(self.generator, prompt, WHY_FIT_SHAPE)
        except Exception as exc:
            logger.warning("why_fit generation failed: %s", exc)
            return "", True

        why_fit = payload.get("why_fit") if isinstance(payload, dict) else None
        if not isinstance(why_fit, str):
            logger.warning("why_fit generation returned malformed output")
            return "", True
        return truncate_narrative(why_fit.strip()), False

    def clear_answers(self, job_id: str | None = None) -> int:
        return self.cache.clear(job_id)

    def _cached(self, job_id: str) -> AnswerSet | None:
        try:
            return self.cache.get(job_id)
        except Exception as exc:
            logger.warning("Answer cache lookup failed for job %s: %s", job_id, exc)
            return None
