from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional, Union

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from .. import submissions
from ..analysis import RefreshContext, refresh_in_background
from ..db import get_db
from ..deps import get_refresh_context
from ..edit_keys import normalize_edit_key
from ..errors import EditKeyExhausted, NotFoundError, SubmissionInvalid
from ..exports import filter_submissions
from ..store import FeedbackStore, feedback_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback"])


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnswerIn(CamelModel):
	question_id: str
	selected_value: Union[str, int]
	experience: str = ""


class FeedbackIn(CamelModel):
	nickname: str
	role: str
	answers: List[AnswerIn]


class AnswerOut(CamelModel):
	question_id: str
	question_title: str
	selected_value: str
	selected_label: str
	selected_text: str
	experience: str
	score: int


class FeedbackOut(CamelModel):
	id: int
	edit_key: str
	nickname: str
	role: str
	answers: List[AnswerOut]
	total_score: int
	maturity_level: str
	submitted_at: datetime
	updated_at: Optional[datetime] = None


class SubmitResult(CamelModel):
	id: int
	edit_key: str
	total_score: int
	maturity_level: str


def _answers_payload(req: FeedbackIn) -> list:
	return [a.model_dump(by_alias=True) for a in req.answers]


@router.post("/feedback", response_model=SubmitResult, status_code=201)
def submit_feedback(
	req: FeedbackIn,
	background_tasks: BackgroundTasks,
	db: Session = Depends(get_db),
	refresh: RefreshContext = Depends(get_refresh_context),
):
	store = FeedbackStore(db)
	try:
		row = submissions.submit(store, req.nickname, req.role, _answers_payload(req))
	except SubmissionInvalid as e:
		raise HTTPException(status_code=400, detail=str(e))
	except EditKeyExhausted as e:
		logger.error("Edit key generation exhausted: %s", e)
		raise HTTPException(status_code=500, detail="Failed to submit feedback")
	# Regenerate the cached analysis without holding up the response
	background_tasks.add_task(refresh_in_background, refresh)
	return SubmitResult(id=row.id, edit_key=row.edit_key, total_score=row.total_score, maturity_level=row.maturity_level)


@router.get("/feedback", response_model=List[FeedbackOut])
def list_feedback(
	search: Optional[str] = None,
	role: Optional[str] = None,
	level: Optional[str] = None,
	sort_by: str = Query(default="date", pattern="^(date|score)$"),
	order: str = Query(default="desc", pattern="^(asc|desc)$"),
	db: Session = Depends(get_db),
):
	rows = [feedback_to_dict(r) for r in FeedbackStore(db).list_all()]
	if search or role or level or sort_by != "date" or order != "desc":
		rows = filter_submissions(rows, search=search, role=role, level=level, sort_by=sort_by, order=order)
	return rows


@router.get("/edit/{edit_key}", response_model=FeedbackOut)
def get_for_edit(edit_key: str, db: Session = Depends(get_db)):
	try:
		row = submissions.get_by_edit_key(FeedbackStore(db), edit_key)
	except NotFoundError:
		raise HTTPException(status_code=404, detail=f'The edit key "{normalize_edit_key(edit_key)}" is invalid or has expired.')
	return feedback_to_dict(row)


@router.put("/edit/{edit_key}", response_model=FeedbackOut)
def update_feedback(edit_key: str, req: FeedbackIn, db: Session = Depends(get_db)):
	try:
		row = submissions.update(FeedbackStore(db), edit_key, req.nickname, req.role, _answers_payload(req))
	except NotFoundError:
		raise HTTPException(status_code=404, detail=f'The edit key "{normalize_edit_key(edit_key)}" is invalid or has expired.')
	except SubmissionInvalid as e:
		raise HTTPException(status_code=400, detail=str(e))
	return feedback_to_dict(row)
