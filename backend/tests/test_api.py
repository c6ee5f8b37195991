"""Tests for the HTTP surface using FastAPI's TestClient."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from assessment.deps import get_client_factory
from assessment.main import app
from assessment.settings import settings
from conftest import FakeTextGenerator, answer_inputs


def _submit(api: TestClient, values=(2,) * 8, nickname: str = "pippin", role: str = "engineer", experiences=None):
	return api.post(
		"/feedback",
		json={"nickname": nickname, "role": role, "answers": answer_inputs(list(values), experiences)},
	)


class TestQuestions:
	def test_catalog(self, api: TestClient) -> None:
		data = api.get("/questions").json()
		assert len(data["questions"]) == 8
		assert data["questions"][0]["options"][3] == {
			"value": "4",
			"label": "D",
			"text": "Every commit runs a standardized pipeline template for all services.",
		}
		assert [m["level"] for m in data["maturityLevels"]] == ["Initial", "Emerging", "Established", "Optimizing"]


class TestSubmitAndEdit:
	def test_submit_returns_key_and_score(self, api: TestClient) -> None:
		resp = _submit(api)
		assert resp.status_code == 201
		body = resp.json()
		assert body["totalScore"] == 16
		assert body["maturityLevel"] == "Emerging"
		assert len(body["editKey"]) == 6

	def test_submit_triggers_background_refresh(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		_submit(api, experiences=["We build on laptops"] + [""] * 7)
		cached = api.get("/analysis")
		assert cached.status_code == 200
		assert cached.json()["totalResponses"] == 1
		assert fake_llm.calls

	def test_submit_succeeds_when_background_refresh_fails(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		fake_llm.fail_overall = True
		assert _submit(api).status_code == 201
		assert api.get("/analysis").status_code == 404

	def test_submit_validation_error(self, api: TestClient) -> None:
		resp = api.post("/feedback", json={"nickname": " ", "role": "engineer", "answers": answer_inputs([2] * 8)})
		assert resp.status_code == 400
		resp = api.post("/feedback", json={"nickname": "x", "role": "engineer", "answers": answer_inputs([2] * 3)})
		assert resp.status_code == 400

	def test_edit_lookup_is_case_insensitive(self, api: TestClient) -> None:
		key = _submit(api).json()["editKey"]
		resp = api.get(f"/edit/{key.lower()}")
		assert resp.status_code == 200
		body = resp.json()
		assert body["editKey"] == key
		assert body["updatedAt"] is None
		assert body["answers"][0]["questionTitle"] == "Build & Integration"

	def test_edit_unknown_key(self, api: TestClient) -> None:
		resp = api.get("/edit/zzzzzz")
		assert resp.status_code == 404
		assert "ZZZZZZ" in resp.json()["detail"]

	def test_update_recomputes(self, api: TestClient) -> None:
		key = _submit(api).json()["editKey"]
		resp = api.put(
			f"/edit/{key}",
			json={"nickname": "pippin", "role": "product", "answers": answer_inputs([4] + [2] * 7)},
		)
		assert resp.status_code == 200
		body = resp.json()
		assert body["totalScore"] == 18
		assert body["maturityLevel"] == "Emerging"
		assert body["role"] == "product"
		assert body["updatedAt"] is not None

	def test_update_unknown_key(self, api: TestClient) -> None:
		resp = api.put("/edit/ZZZZZZ", json={"nickname": "x", "role": "engineer", "answers": answer_inputs([2] * 8)})
		assert resp.status_code == 404

	def test_list_feedback_filters(self, api: TestClient) -> None:
		_submit(api, values=[1] * 8, nickname="merry", role="product")
		_submit(api, values=[4] * 8, nickname="sam")
		assert [f["nickname"] for f in api.get("/feedback").json()] == ["sam", "merry"]
		assert [f["nickname"] for f in api.get("/feedback", params={"role": "product"}).json()] == ["merry"]
		assert [f["totalScore"] for f in api.get("/feedback", params={"sort_by": "score", "order": "asc"}).json()] == [8, 32]

	def test_list_feedback_role_filter_ignores_case(self, api: TestClient) -> None:
		_submit(api, nickname="merry", role="Product")
		_submit(api, nickname="sam", role="engineer")
		assert [f["nickname"] for f in api.get("/feedback", params={"role": "Engineer"}).json()] == ["sam"]


class TestAi:
	def test_enhance(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		fake_llm.area = "  We run builds locally.  "
		resp = api.post(
			"/enhance",
			json={"questionTitle": "Build & Integration", "selectedOption": "local builds", "experience": "we build local"},
		)
		assert resp.status_code == 200
		assert resp.json() == {"enhanced": "We run builds locally."}
		assert "User's experience: we build local" in fake_llm.calls[-1]["prompt"]

	def test_enhance_failure(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		async def _boom(prompt, *, system=None):
			raise RuntimeError("upstream down")

		fake_llm.generate = _boom
		resp = api.post("/enhance", json={"questionTitle": "Build & Integration", "experience": "x"})
		assert resp.status_code == 500
		assert resp.json()["detail"] == "Failed to enhance description"

	def test_summarize_without_experiences(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		resp = api.post("/summarize", json={"questionTitle": "t", "experiences": [], "avgScore": 2.0})
		assert resp.json() == {"summary": "No experiences shared yet."}
		resp = api.post("/summarize", json={"questionTitle": "t", "experiences": ["", "  "], "avgScore": 2.0})
		assert resp.json() == {"summary": "No detailed experiences shared."}
		assert fake_llm.calls == []

	def test_summarize(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		resp = api.post("/summarize", json={"questionTitle": "Test Automation", "experiences": ["a", "b"], "avgScore": 2.5})
		assert resp.json() == {"summary": "Area themes."}
		assert "Average Score: 2.50/4" in fake_llm.calls[-1]["prompt"]

	def test_analyze_empty(self, api: TestClient) -> None:
		assert api.post("/analyze").json() == {"message": "No feedback to analyze"}

	def test_analyze(self, api: TestClient) -> None:
		_submit(api, values=[1, 1, 1, 1, 1, 1, 2, 2], experiences=["manual"] * 8)
		_submit(api, values=[4, 4, 4, 4, 4, 4, 3, 3], experiences=["automated"] * 8)
		body = api.post("/analyze").json()
		assert body == {
			"success": True,
			"totalResponses": 2,
			"avgScore": 20.0,
			"summary": "Teams have solid CI but deployments lag.",
			"actionItems": 2,
			"areaSummaries": 8,
		}
		cached = api.get("/analysis").json()
		assert cached["dominantMaturityLevel"] == "Initial"

	def test_analyze_upstream_failure(self, api: TestClient, fake_llm: FakeTextGenerator) -> None:
		_submit(api)
		fake_llm.fail_overall = True
		resp = api.post("/analyze")
		assert resp.status_code == 500
		assert resp.json()["detail"] == "Failed to generate analysis"


class TestAiWithoutCredentials:
	@pytest.fixture()
	def unconfigured(self, api: TestClient, monkeypatch) -> TestClient:
		monkeypatch.setattr(settings, "gemini_api_key", None)
		app.dependency_overrides.pop(get_client_factory)
		return api

	def test_enhance_unavailable(self, unconfigured: TestClient) -> None:
		resp = unconfigured.post("/enhance", json={"questionTitle": "Build & Integration", "experience": "x"})
		assert resp.status_code == 503

	def test_analyze_unavailable(self, unconfigured: TestClient) -> None:
		assert _submit(unconfigured).status_code == 201
		assert unconfigured.post("/analyze").status_code == 503

	def test_analyze_empty_needs_no_credentials(self, unconfigured: TestClient) -> None:
		resp = unconfigured.post("/analyze")
		assert resp.status_code == 200
		assert resp.json() == {"message": "No feedback to analyze"}


class TestDashboard:
	def test_stats_empty(self, api: TestClient) -> None:
		body = api.get("/dashboard/stats").json()
		assert body["hasData"] is False
		assert body["avgScore"] is None

	def test_stats(self, api: TestClient) -> None:
		_submit(api, values=[1, 1, 1, 1, 1, 1, 2, 2], role="engineer")
		_submit(api, values=[4, 4, 4, 4, 4, 4, 3, 3], role="product")
		body = api.get("/dashboard/stats").json()
		assert body["avgScore"] == 20.0
		assert body["maturityDistribution"] == {"Initial": 1, "Optimizing": 1}
		assert body["roleDistribution"] == {"engineer": 1, "product": 1}
		assert body["dominantMaturityLevel"] == "Initial"

	def test_analysis_missing(self, api: TestClient) -> None:
		assert api.get("/analysis").status_code == 404

	def test_export_download(self, api: TestClient) -> None:
		_submit(api)
		resp = api.get("/dashboard/export", params={"insights": "false"})
		assert resp.status_code == 200
		assert resp.headers["content-disposition"].startswith('attachment; filename="cicd-assessment-export-')
		body = resp.json()
		assert len(body["allResponses"]) == 1
		assert "insights" not in body
		assert "aiAnalysis" in body
