from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .edit_keys import is_well_formed, normalize_edit_key
from .errors import NotFoundError
from .models import Analysis, Feedback

logger = logging.getLogger(__name__)

# Fields update() may overwrite; id, edit_key and submitted_at are fixed at insert
_PATCHABLE = {"nickname", "role", "answers", "total_score", "maturity_level"}


class FeedbackStore:
	def __init__(self, db: Session) -> None:
		self.db = db

	def insert(self, *, edit_key: str, nickname: str, role: str, answers: List[Dict[str, Any]], total_score: int, maturity_level: str) -> int:
		row = Feedback(
			edit_key=normalize_edit_key(edit_key),
			nickname=nickname,
			role=role,
			answers=answers,
			total_score=total_score,
			maturity_level=maturity_level,
			submitted_at=datetime.utcnow(),
		)
		self.db.add(row)
		try:
			self.db.commit()
		except Exception:
			self.db.rollback()
			raise
		self.db.refresh(row)
		return row.id

	def get(self, feedback_id: int) -> Optional[Feedback]:
		return self.db.get(Feedback, feedback_id)

	def find_by_edit_key(self, key: str) -> Optional[Feedback]:
		canonical = normalize_edit_key(key)
		if not is_well_formed(canonical):
			return None
		return self.db.execute(select(Feedback).where(Feedback.edit_key == canonical)).scalars().first()

	def edit_key_exists(self, key: str) -> bool:
		return self.find_by_edit_key(key) is not None

	def list_all(self) -> List[Feedback]:
		# Newest first; id breaks ties between identical timestamps
		stmt = select(Feedback).order_by(Feedback.submitted_at.desc(), Feedback.id.desc())
		return list(self.db.execute(stmt).scalars().all())

	def patch(self, feedback_id: int, fields: Dict[str, Any]) -> Feedback:
		unknown = set(fields) - _PATCHABLE
		if unknown:
			raise ValueError(f"fields cannot be patched: {sorted(unknown)}")
		row = self.db.get(Feedback, feedback_id)
		if row is None:
			raise NotFoundError(f"feedback {feedback_id} not found")
		for name, value in fields.items():
			setattr(row, name, value)
		row.updated_at = datetime.utcnow()
		self.db.add(row)
		try:
			self.db.commit()
		except Exception:
			self.db.rollback()
			raise
		self.db.refresh(row)
		return row


class AnalysisStore:
	"""Owner of the single cached analysis row."""

	def __init__(self, db: Session) -> None:
		self.db = db

	def get_latest(self) -> Optional[Analysis]:
		stmt = select(Analysis).order_by(Analysis.generated_at.desc(), Analysis.id.desc())
		return self.db.execute(stmt).scalars().first()

	def create_or_replace(
		self,
		*,
		total_responses: int,
		avg_score: float,
		dominant_maturity_level: str,
		summary: str,
		action_items: List[str],
		area_summaries: List[Dict[str, Any]],
	) -> Analysis:
		row = self.get_latest()
		if row is None:
			row = Analysis()
			logger.info("Creating cached analysis")
		row.total_responses = total_responses
		row.avg_score = avg_score
		row.dominant_maturity_level = dominant_maturity_level
		row.summary = summary
		row.action_items = list(action_items)
		row.area_summaries = list(area_summaries)
		row.generated_at = datetime.utcnow()
		self.db.add(row)
		try:
			self.db.commit()
		except Exception:
			self.db.rollback()
			raise
		self.db.refresh(row)
		return row


def feedback_to_dict(row: Feedback) -> Dict[str, Any]:
	return {
		"id": row.id,
		"editKey": row.edit_key,
		"nickname": row.nickname,
		"role": row.role,
		"answers": list(row.answers or []),
		"totalScore": row.total_score,
		"maturityLevel": row.maturity_level,
		"submittedAt": row.submitted_at,
		"updatedAt": row.updated_at,
	}


def analysis_to_dict(row: Analysis) -> Dict[str, Any]:
	return {
		"totalResponses": row.total_responses,
		"avgScore": row.avg_score,
		"dominantMaturityLevel": row.dominant_maturity_level,
		"summary": row.summary,
		"actionItems": list(row.action_items or []),
		"areaSummaries": list(row.area_summaries or []),
		"generatedAt": row.generated_at,
	}
