from __future__ import annotations
import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from sqlalchemy.orm import Session

from . import aggregation
from .aggregation import QuestionStats
from .settings import settings
from .store import AnalysisStore, FeedbackStore, feedback_to_dict

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
	async def generate(self, prompt: str, *, system: Optional[str] = None) -> str: ...

	async def aclose(self) -> None: ...


OVERALL_SYSTEM = (
	"You are a CI/CD expert analyzing team assessment results. Provide actionable, specific insights. "
	"Be concise but thorough. Format your response as JSON with two fields:\n"
	'- "summary": A 2-3 sentence executive summary of the team\'s CI/CD maturity. IMPORTANT: Do NOT include any '
	"numerical scores, percentages, or statistics in the summary. Focus on qualitative observations about "
	"strengths, weaknesses, and overall state.\n"
	'- "actionItems": An array of 4-6 specific, prioritized action items based on the weakest areas\n\n'
	"Return ONLY valid JSON, no markdown or extra text."
)

AREA_SYSTEM = (
	"You are a CI/CD expert. Summarize the key themes from team experiences in 2-3 sentences. "
	"Be specific and actionable. Do NOT include any numerical scores or statistics in your response."
)

NO_EXPERIENCES_SUMMARY = "No detailed experiences shared for this area."
AREA_UNAVAILABLE_SUMMARY = "Summary unavailable for this area."


# ---- Parsing of the overall summary response ----

@dataclass(frozen=True)
class StructuredSummary:
	summary: str
	action_items: List[str]


@dataclass(frozen=True)
class RawSummary:
	# The model did not return usable JSON; keep its text as the summary
	text: str

	@property
	def summary(self) -> str:
		return self.text

	@property
	def action_items(self) -> List[str]:
		return []


ParsedSummary = Union[StructuredSummary, RawSummary]


def _extract_json_object(text: str) -> Optional[Dict[str, Any]]:
	candidates = [text]
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if code_block:
		candidates.append(code_block.group(1))
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last > first:
		candidates.append(text[first : last + 1])
	for candidate in candidates:
		try:
			data = json.loads(candidate)
		except ValueError:
			continue
		if isinstance(data, dict):
			return data
	return None


def _action_item_text(item: Any) -> str:
	if isinstance(item, str):
		return item
	if isinstance(item, dict):
		return str(item.get("action") or item.get("text") or json.dumps(item, ensure_ascii=False))
	return str(item)


def parse_summary_response(text: str) -> ParsedSummary:
	data = _extract_json_object(text or "")
	if data is None or ("summary" not in data and "actionItems" not in data) or not isinstance(data.get("summary", ""), str):
		return RawSummary(text=(text or "").strip())
	raw_items = data.get("actionItems") or []
	if not isinstance(raw_items, list):
		raw_items = [raw_items]
	items = [t for t in (_action_item_text(i).strip() for i in raw_items) if t]
	return StructuredSummary(summary=str(data.get("summary") or "").strip(), action_items=items)


# ---- Prompt digests ----

def build_overall_prompt(
	total_responses: int,
	avg_score: float,
	dominant: str,
	distribution: Mapping[str, int],
	stats: Mapping[str, QuestionStats],
	*,
	sample_size: int,
) -> str:
	areas = []
	for s in stats.values():
		if not s.has_data:
			continue
		sample = "\n  - ".join(s.experiences[:sample_size])
		areas.append(f"**{s.title}** (avg: {s.avg_score:.2f}/4):\n  - {sample or 'No experiences shared'}")
	dist_lines = "\n".join(f"- {level}: {count}" for level, count in distribution.items())
	return (
		"Analyze this CI/CD assessment data:\n\n"
		f"Total Responses: {total_responses}\n"
		f"Average Score: {avg_score:.1f}/32\n"
		f"Dominant Maturity Level: {dominant}\n\n"
		f"Maturity Distribution:\n{dist_lines}\n\n"
		"Scores and Experiences by Area:\n"
		+ "\n\n".join(areas)
		+ "\n\nGenerate a summary and action items:"
	)


def build_area_prompt(title: str, experiences: Sequence[str]) -> str:
	listing = "\n".join(f"{i + 1}. {e}" for i, e in enumerate(experiences))
	return f"Area: {title}\n\nTeam experiences:\n{listing}\n\nSummarize the key patterns and challenges:"


# ---- Refresh ----

@dataclass
class RefreshOutcome:
	empty: bool
	total_responses: int = 0
	avg_score: Optional[float] = None
	dominant_maturity_level: Optional[str] = None
	summary: str = ""
	action_items: List[str] = field(default_factory=list)
	area_summaries: List[Dict[str, Any]] = field(default_factory=list)
	structured: bool = False


async def _summarize_area(client: TextGenerator, stats: QuestionStats, semaphore: asyncio.Semaphore, sample_size: int) -> Dict[str, Any]:
	entry = {"questionId": stats.question_id, "title": stats.title, "avgScore": stats.avg_score}
	if not stats.experiences:
		return {**entry, "summary": NO_EXPERIENCES_SUMMARY}
	prompt = build_area_prompt(stats.title, stats.experiences[:sample_size])
	try:
		async with semaphore:
			text = await client.generate(prompt, system=AREA_SYSTEM)
		if not isinstance(text, str):
			raise TypeError(f"expected text, got {type(text).__name__}")
		summary = text.strip()
	except Exception:
		logger.warning("Area summary for %s failed", stats.question_id, exc_info=True)
		return {**entry, "summary": AREA_UNAVAILABLE_SUMMARY}
	return {**entry, "summary": summary}


async def refresh_analysis(
	feedback_store: FeedbackStore,
	analysis_store: AnalysisStore,
	client: TextGenerator,
	*,
	concurrency: Optional[int] = None,
	overall_sample: Optional[int] = None,
	area_sample: Optional[int] = None,
) -> RefreshOutcome:
	"""Regenerate the cached analysis from every submission.

	Returns an empty outcome, without writing, when there are no submissions.
	A failing overall-summary call propagates; failing per-area calls fall back
	to placeholder text so the remaining areas still get summarized.
	"""
	submissions = [feedback_to_dict(row) for row in feedback_store.list_all()]
	if not submissions:
		logger.info("No feedback to analyze")
		return RefreshOutcome(empty=True)

	concurrency = concurrency or settings.analysis_concurrency
	overall_sample = overall_sample or settings.analysis_overall_sample
	area_sample = area_sample or settings.analysis_area_sample

	total = len(submissions)
	avg = aggregation.average_score(submissions)
	distribution = aggregation.maturity_distribution(submissions)
	dominant = aggregation.dominant_level(submissions)
	stats = aggregation.per_question_stats(submissions)

	prompt = build_overall_prompt(total, avg, dominant, distribution, stats, sample_size=overall_sample)
	overall_text = await client.generate(prompt, system=OVERALL_SYSTEM)
	parsed = parse_summary_response(overall_text)
	if isinstance(parsed, RawSummary):
		logger.warning("Overall summary was not valid JSON; storing raw text")

	semaphore = asyncio.Semaphore(max(1, concurrency))
	area_summaries = await asyncio.gather(*[
		_summarize_area(client, s, semaphore, area_sample) for s in stats.values() if s.has_data
	])

	analysis_store.create_or_replace(
		total_responses=total,
		avg_score=avg,
		dominant_maturity_level=dominant,
		summary=parsed.summary,
		action_items=parsed.action_items,
		area_summaries=list(area_summaries),
	)
	logger.info("Analysis refreshed from %s responses", total)
	return RefreshOutcome(
		empty=False,
		total_responses=total,
		avg_score=avg,
		dominant_maturity_level=dominant,
		summary=parsed.summary,
		action_items=parsed.action_items,
		area_summaries=list(area_summaries),
		structured=isinstance(parsed, StructuredSummary),
	)


@dataclass
class RefreshContext:
	# Factories used by the detached refresh, which outlives the request's session
	session_factory: Callable[[], Session]
	client_factory: Callable[[], TextGenerator]


async def refresh_in_background(context: RefreshContext) -> None:
	db = context.session_factory()
	client: Optional[TextGenerator] = None
	try:
		client = context.client_factory()
		outcome = await refresh_analysis(FeedbackStore(db), AnalysisStore(db), client)
		if outcome.empty:
			logger.info("Background refresh found no feedback")
	except Exception:
		logger.exception("Background analysis refresh failed")
	finally:
		if client is not None:
			try:
				await client.aclose()
			except Exception:
				logger.debug("Closing text client failed", exc_info=True)
		db.close()
