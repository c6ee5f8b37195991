from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Text, JSON
from .db import Base


class Feedback(Base):
	__tablename__ = "feedback"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Always stored uppercase
	edit_key = Column(String(6), unique=True, index=True, nullable=False)
	nickname = Column(String(128), nullable=False)
	role = Column(String(64), nullable=False)
	# Snapshot of each answer at submit time (question title and option text included)
	answers = Column(JSON, nullable=False)
	total_score = Column(Integer, nullable=False)
	maturity_level = Column(String(32), nullable=False)
	submitted_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)
	updated_at = Column(DateTime, nullable=True)


class Analysis(Base):
	__tablename__ = "analysis"
	# Single live row, replaced in place on each refresh
	id = Column(Integer, primary_key=True, autoincrement=True)
	total_responses = Column(Integer, nullable=False)
	avg_score = Column(Float, nullable=False)
	dominant_maturity_level = Column(String(32), nullable=False)
	summary = Column(Text, nullable=False)
	action_items = Column(JSON, nullable=False)
	area_summaries = Column(JSON, nullable=False)
	generated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
