from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..aggregation import compute_insights
from ..db import get_db
from ..exports import build_export, export_filename
from ..store import AnalysisStore, FeedbackStore, analysis_to_dict, feedback_to_dict

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/stats")
def dashboard_stats(db: Session = Depends(get_db)):
	# Recomputed on every read; nothing here is cached
	rows = [feedback_to_dict(r) for r in FeedbackStore(db).list_all()]
	return compute_insights(rows)


@router.get("/analysis")
def cached_analysis(db: Session = Depends(get_db)):
	row = AnalysisStore(db).get_latest()
	if row is None:
		raise HTTPException(status_code=404, detail="No analysis generated yet")
	return analysis_to_dict(row)


@router.get("/dashboard/export")
def export(
	all_responses: bool = True,
	filtered_responses: bool = False,
	insights: bool = True,
	ai_analysis: bool = True,
	search: Optional[str] = None,
	role: Optional[str] = None,
	level: Optional[str] = None,
	sort_by: str = "date",
	order: str = "desc",
	db: Session = Depends(get_db),
):
	rows = [feedback_to_dict(r) for r in FeedbackStore(db).list_all()]
	latest = AnalysisStore(db).get_latest()
	data = build_export(
		rows,
		analysis_to_dict(latest) if latest is not None else None,
		all_responses=all_responses,
		filtered_responses=filtered_responses,
		insights=insights,
		ai_analysis=ai_analysis,
		search=search,
		role=role,
		level=level,
		sort_by=sort_by,
		order=order,
	)
	headers = {"Content-Disposition": f'attachment; filename="{export_filename()}"'}
	return JSONResponse(content=jsonable_encoder(data), headers=headers)
