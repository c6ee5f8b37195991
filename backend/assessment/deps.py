from __future__ import annotations
from typing import AsyncIterator, Callable

from fastapi import Depends, HTTPException

from .analysis import RefreshContext, TextGenerator
from .db import SessionLocal
from .errors import UpstreamUnavailable
from .gemini_client import GeminiClient


def get_client_factory() -> Callable[[], TextGenerator]:
	return GeminiClient


def open_text_client(factory: Callable[[], TextGenerator]) -> TextGenerator:
	try:
		return factory()
	except UpstreamUnavailable as e:
		raise HTTPException(status_code=503, detail=str(e))


async def get_text_client(
	factory: Callable[[], TextGenerator] = Depends(get_client_factory),
) -> AsyncIterator[TextGenerator]:
	client = open_text_client(factory)
	try:
		yield client
	finally:
		await client.aclose()


def get_refresh_context() -> RefreshContext:
	return RefreshContext(session_factory=SessionLocal, client_factory=GeminiClient)
