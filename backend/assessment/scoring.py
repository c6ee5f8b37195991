from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .catalog import QUESTION_IDS, get_question, lookup_option
from .errors import SubmissionInvalid


@dataclass(frozen=True)
class MaturityBand:
	level: str
	min_score: int
	max_score: int
	description: str


MATURITY_BANDS: Tuple[MaturityBand, ...] = (
	MaturityBand("Initial", 8, 13, "Focus on getting basic CI, tests, and scripted deploys."),
	MaturityBand("Emerging", 14, 20, "Standardize pipelines, security scans, and infrastructure as code."),
	MaturityBand("Established", 21, 27, "Invest in observability, faster feedback, and more frequent releases."),
	MaturityBand("Optimizing", 28, 32, "Refine with advanced testing, progressive delivery, and data-driven improvements."),
)

# Lowest maturity first; also the tie-break order for dominant level
MATURITY_LEVELS: List[str] = [b.level for b in MATURITY_BANDS]
MIN_TOTAL_SCORE = MATURITY_BANDS[0].min_score
MAX_TOTAL_SCORE = MATURITY_BANDS[-1].max_score


def compute_total_score(answers: Iterable[Mapping[str, Any]]) -> int:
	"""Sum answer scores; a question with no answer yet contributes 0.

	Raises ValueError when two answers target the same question.
	"""
	seen = set()
	total = 0
	for a in answers:
		qid = a["questionId"]
		if qid in seen:
			raise ValueError(f"duplicate answer for question {qid}")
		seen.add(qid)
		total += int(a["score"])
	return total


def classify_maturity(total_score: int) -> str:
	if total_score < MIN_TOTAL_SCORE or total_score > MAX_TOTAL_SCORE:
		raise ValueError(f"total score {total_score} outside [{MIN_TOTAL_SCORE}, {MAX_TOTAL_SCORE}]")
	for band in MATURITY_BANDS:
		if band.min_score <= total_score <= band.max_score:
			return band.level
	raise AssertionError(f"maturity bands do not cover {total_score}")


def build_answer(question_id: str, selected_value: Any, experience: str | None = "") -> Dict[str, Any]:
	"""Snapshot one answer from the catalog as it stands now."""
	question = get_question(question_id)
	if question is None:
		raise SubmissionInvalid(f"unknown question: {question_id}")
	option = lookup_option(question_id, selected_value)
	if option is None:
		raise SubmissionInvalid(f"invalid option {selected_value!r} for {question_id}")
	return {
		"questionId": question.id,
		"questionTitle": question.title,
		"selectedValue": str(option.value),
		"selectedLabel": option.label,
		"selectedText": option.text,
		"experience": (experience or "").strip(),
		"score": option.value,
	}


def build_answer_set(inputs: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
	"""Snapshot a complete answer set, one per catalog question, in catalog order."""
	by_question: Dict[str, Dict[str, Any]] = {}
	for item in inputs:
		qid = str(item.get("questionId") or "").strip()
		if qid in by_question:
			raise SubmissionInvalid(f"duplicate answer for question {qid}")
		by_question[qid] = build_answer(qid, item.get("selectedValue"), item.get("experience"))
	missing = [qid for qid in QUESTION_IDS if qid not in by_question]
	if missing:
		raise SubmissionInvalid(f"missing answers for: {', '.join(missing)}")
	return [by_question[qid] for qid in QUESTION_IDS]


def score_answers(answers: Sequence[Mapping[str, Any]]) -> Tuple[int, str]:
	total = compute_total_score(answers)
	return total, classify_maturity(total)
