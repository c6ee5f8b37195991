"""Fixed CI/CD maturity questionnaire.

Submissions copy a question's title and the chosen option's text at submit
time, so edits here never rewrite historical answers. Ids, ordering and option
values must stay stable or re-scoring old submissions will disagree with the
stored totals.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Option:
	value: int
	text: str

	@property
	def label(self) -> str:
		return "ABCD"[self.value - 1]


@dataclass(frozen=True)
class Question:
	id: str
	title: str
	options: Tuple[Option, ...]


def _options(*texts: str) -> Tuple[Option, ...]:
	return tuple(Option(value=i + 1, text=t) for i, t in enumerate(texts))


QUESTIONS: Tuple[Question, ...] = (
	Question("q1", "Build & Integration", _options(
		"Developers build and test mostly on local machines; no reliable shared CI.",
		"We have a CI server that builds main branch on push or nightly.",
		"Every merge request/PR triggers automated build and tests.",
		"Every commit runs a standardized pipeline template for all services.",
	)),
	Question("q2", "Test Automation", _options(
		"Most testing is manual; automated tests are rare or flaky.",
		"We have some unit tests that run in CI, but coverage is limited.",
		"Unit and integration tests run on each pipeline; failures block merges.",
		"We have a solid test pyramid, including API/UI/contract tests, with reliable, fast feedback.",
	)),
	Question("q3", "Deployment Process", _options(
		"Deployments are manual (clicks/SSH/scripts), often at night or on weekends.",
		"We have scripts or tools for deploys, but they require manual triggering.",
		"We can deploy to at least one non-prod and one prod environment via the pipeline.",
		"Deployments are fully automated, repeatable, and self-service for teams.",
	)),
	Question("q4", "Release Frequency", _options(
		"We release a few times a year or only on big projects.",
		"We release roughly monthly.",
		"We release weekly or more often.",
		"We can release on demand and do so frequently (daily or multiple times per week).",
	)),
	Question("q5", "Environments & Infrastructure", _options(
		"Environments are snowflakes; changes done manually on servers.",
		"Some environment setup is scripted, but not fully reproducible.",
		"We use infrastructure as code for main environments; changes are reviewed.",
		"All infra and config are defined as code, versioned, and deployed via pipeline.",
	)),
	Question("q6", "Observability & Feedback", _options(
		"We mostly find issues from user reports; limited central logging.",
		"We have centralized logs or basic monitoring, mainly for uptime.",
		"We track key application metrics and deployment events, with alerts on failures.",
		"We have dashboards for builds, deploys, and service health; teams regularly review them and act.",
	)),
	Question("q7", "Security & Compliance", _options(
		"No automated scans; security reviews are manual or ad-hoc before major releases.",
		"We have scans but results are hard to interpret; developers waste time on trial-and-error fixes.",
		"Scans run in pipelines with clear pass/fail gates; some remediation guidance exists.",
		"Comprehensive scanning (SAST, SCA, secrets) with actionable feedback and documented remediation paths.",
	)),
	Question("q8", "Culture & Ownership", _options(
		"Dev and ops are siloed; handoffs for testing and releases are common.",
		"Dev and ops talk regularly but still have distinct responsibilities.",
		"A cross-functional team owns build, test, and run for their services.",
		"Teams continuously improve their delivery process and experiment with new practices.",
	)),
)

QUESTION_IDS: List[str] = [q.id for q in QUESTIONS]
_BY_ID: Dict[str, Question] = {q.id: q for q in QUESTIONS}

KNOWN_ROLES: List[str] = ["engineer", "product"]


def get_question(question_id: str) -> Optional[Question]:
	return _BY_ID.get(question_id)


def question_title(question_id: str) -> str:
	q = _BY_ID.get(question_id)
	return q.title if q else question_id


def lookup_option(question_id: str, value) -> Optional[Option]:
	"""Return the option of `question_id` whose value is `value` (int or numeric string)."""
	q = _BY_ID.get(question_id)
	if q is None:
		return None
	try:
		wanted = int(str(value).strip())
	except (TypeError, ValueError):
		return None
	for opt in q.options:
		if opt.value == wanted:
			return opt
	return None

