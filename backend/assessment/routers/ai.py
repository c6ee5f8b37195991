from __future__ import annotations
import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..analysis import TextGenerator, refresh_analysis
from ..db import get_db
from ..deps import get_client_factory, get_text_client, open_text_client
from ..settings import settings
from ..store import AnalysisStore, FeedbackStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])


ENHANCE_SYSTEM = (
	"You are a technical writing assistant helping improve CI/CD maturity assessment responses.\n"
	"Your job is to enhance the user's description to be clearer, more specific, and professionally worded "
	"while preserving their original meaning and context.\n"
	"Keep it concise (2-3 sentences max). Don't add information they didn't provide. "
	'Use their perspective (first person plural "we").'
)

SUMMARIZE_SYSTEM = (
	"You are a technical analyst summarizing CI/CD assessment feedback. Be concise and actionable. "
	"Focus on patterns, common challenges, and key insights. Output 2-3 sentences max."
)


class EnhanceRequest(BaseModel):
	questionTitle: str
	selectedOption: str = ""
	experience: str


class EnhanceResponse(BaseModel):
	enhanced: str


class SummarizeRequest(BaseModel):
	questionTitle: str
	experiences: List[Optional[str]] = Field(default_factory=list)
	avgScore: float = 0.0


class SummarizeResponse(BaseModel):
	summary: str


def _build_enhance_prompt(req: EnhanceRequest) -> str:
	return (
		f"Question: {req.questionTitle}\n"
		f"Selected answer: {req.selectedOption}\n"
		f"User's experience: {req.experience}\n\n"
		"Enhance this description to be clearer and more professionally worded:"
	)


def _build_summarize_prompt(req: SummarizeRequest, experiences: List[str]) -> str:
	listing = "\n".join(f"{i + 1}. {e}" for i, e in enumerate(experiences))
	return (
		f"Area: {req.questionTitle}\n"
		f"Average Score: {req.avgScore:.2f}/4\n\n"
		f"Team experiences:\n{listing}\n\n"
		"Summarize the key themes and patterns from these experiences:"
	)


@router.post("/enhance", response_model=EnhanceResponse)
async def enhance(req: EnhanceRequest, client: TextGenerator = Depends(get_text_client)):
	if not req.experience.strip():
		raise HTTPException(status_code=400, detail="experience is required")
	try:
		text = await client.generate(_build_enhance_prompt(req), system=ENHANCE_SYSTEM)
	except Exception:
		logger.exception("AI enhancement error")
		raise HTTPException(status_code=500, detail="Failed to enhance description")
	return EnhanceResponse(enhanced=text.strip())


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(req: SummarizeRequest, client: TextGenerator = Depends(get_text_client)):
	if not req.experiences:
		return SummarizeResponse(summary="No experiences shared yet.")
	experiences = [e.strip() for e in req.experiences if e and e.strip()][: settings.summarize_sample]
	if not experiences:
		return SummarizeResponse(summary="No detailed experiences shared.")
	try:
		text = await client.generate(_build_summarize_prompt(req, experiences), system=SUMMARIZE_SYSTEM)
	except Exception:
		logger.exception("Summarization error")
		raise HTTPException(status_code=500, detail="Failed to generate summary")
	return SummarizeResponse(summary=text.strip())


@router.post("/analyze")
async def analyze(
	db: Session = Depends(get_db),
	client_factory: Callable[[], TextGenerator] = Depends(get_client_factory),
):
	store = FeedbackStore(db)
	# An empty dataset is answered without needing a configured generator
	if not store.list_all():
		return {"message": "No feedback to analyze"}
	client = open_text_client(client_factory)
	try:
		outcome = await refresh_analysis(store, AnalysisStore(db), client)
	except Exception:
		logger.exception("Analysis error")
		raise HTTPException(status_code=500, detail="Failed to generate analysis")
	finally:
		await client.aclose()
	if outcome.empty:
		return {"message": "No feedback to analyze"}
	return {
		"success": True,
		"totalResponses": outcome.total_responses,
		"avgScore": outcome.avg_score,
		"summary": outcome.summary,
		"actionItems": len(outcome.action_items),
		"areaSummaries": len(outcome.area_summaries),
	}
