"""Cross-submission statistics.

Every function here is pure: it reads plain submission dicts (the shape
produced by ``store.feedback_to_dict``) and never touches the database, so
dashboards can recompute on every request and get identical results for an
unchanged submission set.
"""
from __future__ import annotations
import statistics
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .catalog import QUESTIONS, question_title
from .scoring import MATURITY_LEVELS

Submission = Mapping[str, Any]


@dataclass
class QuestionStats:
	question_id: str
	title: str
	response_count: int = 0
	score_sum: int = 0
	scores: List[int] = field(default_factory=list)
	histogram: Dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0})
	experiences: List[str] = field(default_factory=list)

	@property
	def has_data(self) -> bool:
		return self.response_count > 0

	@property
	def avg_score(self) -> Optional[float]:
		if not self.response_count:
			return None
		return self.score_sum / self.response_count

	@property
	def std_dev(self) -> Optional[float]:
		if not self.scores:
			return None
		return statistics.pstdev(self.scores)

	def to_dict(self, total_responses: int = 0) -> Dict[str, Any]:
		avg = self.avg_score
		std = self.std_dev
		out: Dict[str, Any] = {
			"questionId": self.question_id,
			"title": self.title,
			"avgScore": round(avg, 2) if avg is not None else None,
			"stdDev": round(std, 2) if std is not None else None,
			"responseCount": self.response_count,
			"distribution": {str(k): v for k, v in self.histogram.items()},
		}
		if total_responses:
			out["distributionPercentages"] = {
				str(k): round(v / total_responses * 100, 1) for k, v in self.histogram.items()
			}
		return out


def average_score(submissions: Sequence[Submission]) -> Optional[float]:
	"""Mean total score, or None when there is nothing to average."""
	if not submissions:
		return None
	return sum(int(s["totalScore"]) for s in submissions) / len(submissions)


def _level_rank(level: str) -> Tuple[int, str]:
	if level in MATURITY_LEVELS:
		return (MATURITY_LEVELS.index(level), "")
	return (len(MATURITY_LEVELS), level)


def maturity_distribution(submissions: Sequence[Submission]) -> Dict[str, int]:
	counts: Dict[str, int] = {}
	for s in submissions:
		level = s["maturityLevel"]
		counts[level] = counts.get(level, 0) + 1
	return {level: counts[level] for level in sorted(counts, key=_level_rank)}


def dominant_level(submissions: Sequence[Submission]) -> Optional[str]:
	"""Most common maturity level; ties go to the lower maturity level."""
	dist = maturity_distribution(submissions)
	if not dist:
		return None
	best = max(dist.values())
	for level in sorted(dist, key=_level_rank):
		if dist[level] == best:
			return level
	return None


def role_distribution(submissions: Sequence[Submission]) -> Dict[str, int]:
	counts: Dict[str, int] = {}
	for s in submissions:
		role = s["role"]
		counts[role] = counts.get(role, 0) + 1
	return dict(sorted(counts.items()))


def per_question_stats(submissions: Sequence[Submission]) -> Dict[str, QuestionStats]:
	# Catalog questions always appear, in catalog order; ids no longer in the
	# catalog (older snapshots) follow in sorted order.
	stats: Dict[str, QuestionStats] = {q.id: QuestionStats(q.id, q.title) for q in QUESTIONS}
	extra: Dict[str, QuestionStats] = {}
	for s in submissions:
		for a in s.get("answers") or []:
			qid = a["questionId"]
			entry = stats.get(qid) or extra.get(qid)
			if entry is None:
				entry = extra[qid] = QuestionStats(qid, a.get("questionTitle") or question_title(qid))
			score = int(a["score"])
			entry.response_count += 1
			entry.score_sum += score
			entry.scores.append(score)
			if score in entry.histogram:
				entry.histogram[score] += 1
			text = (a.get("experience") or "").strip()
			if text:
				entry.experiences.append(text)
	for qid in sorted(extra):
		stats[qid] = extra[qid]
	return stats


def ranked_areas(stats: Mapping[str, QuestionStats]) -> List[QuestionStats]:
	"""Areas with data, lowest average first; catalog order breaks ties."""
	with_data = [s for s in stats.values() if s.has_data]
	return sorted(with_data, key=lambda s: s.avg_score)


def weakest_and_strongest(stats: Mapping[str, QuestionStats]) -> Tuple[Optional[QuestionStats], Optional[QuestionStats]]:
	ranked = ranked_areas(stats)
	if not ranked:
		return None, None
	return ranked[0], ranked[-1]


def compute_insights(submissions: Sequence[Submission], *, top_n: int = 3) -> Dict[str, Any]:
	"""Dashboard bundle; `hasData` is False and averages are None for an empty set."""
	total = len(submissions)
	stats = per_question_stats(submissions)
	weakest, strongest = weakest_and_strongest(stats)
	ranked = ranked_areas(stats)
	avg = average_score(submissions)

	def _brief(s: Optional[QuestionStats]) -> Optional[Dict[str, Any]]:
		if s is None:
			return None
		return {"questionId": s.question_id, "title": s.title, "avgScore": round(s.avg_score, 2)}

	return {
		"hasData": total > 0,
		"totalResponses": total,
		"avgScore": round(avg, 2) if avg is not None else None,
		"maturityDistribution": maturity_distribution(submissions),
		"dominantMaturityLevel": dominant_level(submissions),
		"roleDistribution": role_distribution(submissions),
		"questionStats": [s.to_dict(total) for s in stats.values()],
		"weakest": _brief(weakest),
		"strongest": _brief(strongest),
		"rankings": {
			"lowestScoring": [_brief(s) for s in ranked[:top_n]],
			"highestScoring": [_brief(s) for s in sorted(ranked, key=lambda s: -s.avg_score)[:top_n]],
		},
	}
