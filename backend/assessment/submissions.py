from __future__ import annotations
import logging
from typing import Any, Mapping, Sequence

from .edit_keys import mint_unique_edit_key
from .errors import NotFoundError, SubmissionInvalid
from .models import Feedback
from .scoring import build_answer_set, score_answers
from .settings import settings
from .store import FeedbackStore

logger = logging.getLogger(__name__)


def _clean_nickname(nickname: str | None) -> str:
	value = (nickname or "").strip()
	if not value:
		raise SubmissionInvalid("nickname is required")
	if len(value) > 128:
		raise SubmissionInvalid("nickname must be at most 128 characters")
	return value


def _clean_role(role: str | None) -> str:
	value = (role or "").strip().lower()
	if not value:
		raise SubmissionInvalid("role is required")
	if len(value) > 64:
		raise SubmissionInvalid("role must be at most 64 characters")
	return value


def submit(store: FeedbackStore, nickname: str, role: str, answers: Sequence[Mapping[str, Any]]) -> Feedback:
	nickname = _clean_nickname(nickname)
	role = _clean_role(role)
	snapshot = build_answer_set(answers)
	total, level = score_answers(snapshot)
	edit_key = mint_unique_edit_key(store.edit_key_exists, attempts=settings.edit_key_attempts)
	feedback_id = store.insert(
		edit_key=edit_key,
		nickname=nickname,
		role=role,
		answers=snapshot,
		total_score=total,
		maturity_level=level,
	)
	logger.info("Feedback %s submitted with edit key %s (score=%s level=%s)", feedback_id, edit_key, total, level)
	return store.get(feedback_id)


def get_by_edit_key(store: FeedbackStore, edit_key: str) -> Feedback:
	row = store.find_by_edit_key(edit_key)
	if row is None:
		raise NotFoundError(f"no submission for edit key {edit_key!r}")
	return row


def update(store: FeedbackStore, edit_key: str, nickname: str, role: str, answers: Sequence[Mapping[str, Any]]) -> Feedback:
	row = get_by_edit_key(store, edit_key)
	nickname = _clean_nickname(nickname)
	role = _clean_role(role)
	snapshot = build_answer_set(answers)
	# Score and level always follow the new answers, never the stored ones
	total, level = score_answers(snapshot)
	updated = store.patch(row.id, {
		"nickname": nickname,
		"role": role,
		"answers": snapshot,
		"total_score": total,
		"maturity_level": level,
	})
	logger.info("Feedback %s updated via edit key %s (score=%s level=%s)", updated.id, updated.edit_key, total, level)
	return updated
