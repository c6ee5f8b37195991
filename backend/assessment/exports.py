from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .aggregation import compute_insights


def _iso(value: Optional[datetime]) -> Optional[str]:
	return value.isoformat() + "Z" if value is not None else None


def filter_submissions(
	submissions: Sequence[Mapping[str, Any]],
	*,
	search: Optional[str] = None,
	role: Optional[str] = None,
	level: Optional[str] = None,
	sort_by: str = "date",
	order: str = "desc",
) -> List[Mapping[str, Any]]:
	term = (search or "").strip().lower()
	# Stored roles are lowercased on submit
	role = (role or "").strip().lower()
	out = [
		s for s in submissions
		if (not term or term in s["nickname"].lower())
		and (not role or s["role"] == role)
		and (not level or s["maturityLevel"] == level)
	]
	key = (lambda s: s["totalScore"]) if sort_by == "score" else (lambda s: s["submittedAt"])
	out.sort(key=key, reverse=(order != "asc"))
	return out


def _response_entry(s: Mapping[str, Any], *, full: bool) -> Dict[str, Any]:
	answers = []
	for a in s["answers"]:
		item = {
			"questionId": a["questionId"],
			"questionTitle": a["questionTitle"],
			"selectedLabel": a["selectedLabel"],
			"score": a["score"],
			"experience": a["experience"],
		}
		if full:
			item["selectedText"] = a["selectedText"]
		answers.append(item)
	entry: Dict[str, Any] = {
		"nickname": s["nickname"],
		"role": s["role"],
		"totalScore": s["totalScore"],
		"maturityLevel": s["maturityLevel"],
		"submittedAt": _iso(s["submittedAt"]),
	}
	if full:
		entry["updatedAt"] = _iso(s.get("updatedAt"))
	entry["answers"] = answers
	return entry


def build_export(
	submissions: Sequence[Mapping[str, Any]],
	analysis: Optional[Mapping[str, Any]],
	*,
	all_responses: bool = True,
	filtered_responses: bool = False,
	insights: bool = True,
	ai_analysis: bool = True,
	search: Optional[str] = None,
	role: Optional[str] = None,
	level: Optional[str] = None,
	sort_by: str = "date",
	order: str = "desc",
	now: Optional[datetime] = None,
) -> Dict[str, Any]:
	now = now or datetime.utcnow()
	data: Dict[str, Any] = {
		"exportedAt": _iso(now),
		"exportOptions": {
			"allResponses": all_responses,
			"filteredResponses": filtered_responses,
			"insights": insights,
			"aiAnalysis": ai_analysis,
		},
	}
	if all_responses:
		data["allResponses"] = [_response_entry(s, full=True) for s in submissions]
	if filtered_responses:
		filtered = filter_submissions(submissions, search=search, role=role, level=level, sort_by=sort_by, order=order)
		# Only worth including when the filters actually narrowed the set
		if len(filtered) != len(submissions):
			data["filteredResponses"] = {
				"filters": {
					"searchTerm": search or None,
					"roleFilter": role or None,
					"levelFilter": level or None,
				},
				"count": len(filtered),
				"responses": [_response_entry(s, full=False) for s in filtered],
			}
	if insights and submissions:
		data["insights"] = compute_insights(submissions)
	if ai_analysis and analysis:
		data["aiAnalysis"] = {
			"summary": analysis["summary"],
			"actionItems": analysis["actionItems"],
			"dominantMaturityLevel": analysis["dominantMaturityLevel"],
			"avgScore": analysis["avgScore"],
			"totalResponses": analysis["totalResponses"],
			"areaSummaries": analysis["areaSummaries"],
			"generatedAt": _iso(analysis["generatedAt"]),
		}
	return data


def export_filename(now: Optional[datetime] = None) -> str:
	now = now or datetime.utcnow()
	return f"cicd-assessment-export-{now.date().isoformat()}.json"
