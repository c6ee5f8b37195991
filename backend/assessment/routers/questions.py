from fastapi import APIRouter

from ..catalog import KNOWN_ROLES, QUESTIONS
from ..scoring import MATURITY_BANDS

router = APIRouter(tags=["questions"])


@router.get("/questions")
def get_questions():
	return {
		"questions": [
			{
				"id": q.id,
				"title": q.title,
				"options": [{"value": str(o.value), "label": o.label, "text": o.text} for o in q.options],
			}
			for q in QUESTIONS
		],
		"maturityLevels": [
			{"level": b.level, "min": b.min_score, "max": b.max_score, "description": b.description}
			for b in MATURITY_BANDS
		],
		"roles": list(KNOWN_ROLES),
	}
