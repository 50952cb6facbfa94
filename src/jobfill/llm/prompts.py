from __future__ import annotations

LABEL_MAPPING_PROMPT = """
You are a form field label analyzer. Map each label to a canonical key.

CANONICAL KEYS:
{canonical_keys}

RULES:
- Only use a canonical key if the label clearly matches that field
- If no good match exists, use "unknown"
- Be conservative - when in doubt, use "unknown"

LABELS TO MAP:
{labels}

Return strict JSON: an object with a "mappings" array, one entry per label,
copying each label exactly as given:
{{"mappings": [{{"label": "Email Address", "key": "email"}}]}}
""".strip()

WHY_FIT_PROMPT = """
Generate a "why_fit" answer for this job application based on the candidate's profile
and the job requirements.

CANDIDATE PROFILE:
{profile_summary}

CANDIDATE INFO:
Name: {full_name}
Years .NET: {years_dotnet}
Years Azure: {years_azure}

RESUME CONTENT:
{resume_content}

JOB POSTING:
Title: {job_title}
Description:
{job_description}

INSTRUCTIONS:
1. Write 2-3 sentences explaining why the candidate is a good fit
2. Reference specific skills and experience from the resume that match job requirements
3. Keep it factual and professional (no marketing language)
4. Maximum {max_chars} characters

Return strict JSON: {{"why_fit": "your answer here"}}
""".strip()

RESUME_VARIANT_PROMPT = """
Select the best resume variant for this job application.

JOB TITLE: {job_title}
JOB DESCRIPTION:
{job_description}

AVAILABLE RESUME VARIANTS:
{variants}

Consider the technologies mentioned, role seniority, industry focus and specific skills needed.
Return ONLY the filename of the best resume variant. No explanations, no quotes, no extra text.
""".strip()

JSON_OUTPUT_SUFFIX = """

IMPORTANT: Return ONLY valid JSON for schema {shape}. No markdown code fences and no explanatory text.
""".rstrip()

JSON_RETRY_PREFIX = "The previous attempt generated invalid JSON. Try again.\n\n"
