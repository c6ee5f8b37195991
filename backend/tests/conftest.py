"""Shared fixtures: in-memory database, fake text generator, API client."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from assessment.analysis import OVERALL_SYSTEM, RefreshContext
from assessment.catalog import QUESTION_IDS
from assessment.db import Base, get_db
from assessment.deps import get_client_factory, get_refresh_context
from assessment.main import app
from assessment.scoring import build_answer_set, score_answers
from assessment.store import AnalysisStore, FeedbackStore

OVERALL_JSON = '{"summary": "Teams have solid CI but deployments lag.", "actionItems": ["Automate deploys", "Add IaC"]}'


class FakeTextGenerator:
	"""Records prompts; answers the overall-summary call with `overall`, others with `area`."""

	def __init__(
		self,
		*,
		overall: str = OVERALL_JSON,
		area: str = "Area themes.",
		fail_titles: Sequence[str] = (),
		fail_overall: bool = False,
	) -> None:
		self.overall = overall
		self.area = area
		self.fail_titles = set(fail_titles)
		self.fail_overall = fail_overall
		self.calls: List[Dict[str, Optional[str]]] = []
		self.closed = False

	async def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
		self.calls.append({"prompt": prompt, "system": system})
		if system == OVERALL_SYSTEM:
			if self.fail_overall:
				raise RuntimeError("overall summary failed")
			return self.overall
		for title in self.fail_titles:
			if f"Area: {title}\n" in prompt:
				raise RuntimeError(f"summary for {title} failed")
		return self.area

	async def aclose(self) -> None:
		self.closed = True


def answer_inputs(values: Sequence[int], experiences: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
	"""Wire-format answers for the eight catalog questions, in order."""
	experiences = experiences or [""] * len(values)
	return [
		{"questionId": qid, "selectedValue": str(v), "experience": e}
		for qid, v, e in zip(QUESTION_IDS, values, experiences)
	]


def make_submission(
	values: Sequence[int],
	*,
	role: str = "engineer",
	nickname: str = "tester",
	experiences: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
	"""Submission dict in the shape aggregation functions consume."""
	answers = build_answer_set(answer_inputs(values, experiences))
	total, level = score_answers(answers)
	return {
		"nickname": nickname,
		"role": role,
		"answers": answers,
		"totalScore": total,
		"maturityLevel": level,
	}


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker]:
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=engine)
	yield sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
	engine.dispose()


@pytest.fixture()
def db(session_factory: sessionmaker) -> Iterator[Session]:
	session = session_factory()
	yield session
	session.close()


@pytest.fixture()
def feedback_store(db: Session) -> FeedbackStore:
	return FeedbackStore(db)


@pytest.fixture()
def analysis_store(db: Session) -> AnalysisStore:
	return AnalysisStore(db)


@pytest.fixture()
def fake_llm() -> FakeTextGenerator:
	return FakeTextGenerator()


@pytest.fixture()
def api(session_factory: sessionmaker, fake_llm: FakeTextGenerator) -> Iterator[TestClient]:
	def _get_db():
		session = session_factory()
		try:
			yield session
		finally:
			session.close()

	app.dependency_overrides[get_db] = _get_db
	app.dependency_overrides[get_client_factory] = lambda: (lambda: fake_llm)
	app.dependency_overrides[get_refresh_context] = lambda: RefreshContext(
		session_factory=session_factory,
		client_factory=lambda: fake_llm,
	)
	yield TestClient(app)
	app.dependency_overrides.clear()
