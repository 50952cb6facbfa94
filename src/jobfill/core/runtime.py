from __future__ import annotations

from sqlalchemy.orm import Session

from jobfill.config import Settings, get_settings
from jobfill.core.answers import AnswerSynthesizer
from jobfill.core.cache import AnswerCache, ResolutionCache
from jobfill.core.resolver import FieldResolutionEngine, SemanticResolver
from jobfill.db.store import ANSWERS_NAMESPACE, LABEL_MAP_NAMESPACE, SqlKeyValueStore
from jobfill.fields.policy import load_policy
from jobfill.llm.router import LLMRouter


def build_resolution_engine(
    session: Session,
    settings: Settings | None = None,
    router: LLMRouter | None = None,
) -> FieldResolutionEngine:
    active = settings or get_settings()
    cache = ResolutionCache(SqlKeyValueStore(session, LABEL_MAP_NAMESPACE))
    return FieldResolutionEngine(cache, SemanticResolver(router or LLMRouter(active)))


def build_answer_synthesizer(
    session: Session,
    settings: Settings | None = None,
    router: LLMRouter | None = None,
) -> AnswerSynthesizer:
    active = settings or get_settings()
    return AnswerSynthesizer(
        AnswerCache(SqlKeyValueStore(session, ANSWERS_NAMESPACE)),
        router or LLMRouter(active),
        load_policy(active.answers_policy_path),
    )
