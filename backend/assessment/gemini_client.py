from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional
from .errors import UpstreamUnavailable
from .settings import settings

logger = logging.getLogger(__name__)


class GeminiClient:
	def __init__(self, api_key: Optional[str] = None, *, base_url: Optional[str] = None, model: Optional[str] = None, timeout: float = 30) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise UpstreamUnavailable("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(timeout=timeout)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._openrouter_api_key:
			self._fallback_client = httpx.AsyncClient(timeout=timeout)

	async def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
		"""Return the model's text for `prompt`, steered by an optional system instruction."""
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system:
			payload["systemInstruction"] = {"parts": [{"text": system}]}
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		last_error: Optional[Exception] = None
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
			data = r.json()
			return _gemini_text(data)
		except httpx.HTTPError as err:
			last_error = err
		except (KeyError, IndexError, TypeError, ValueError):
			last_error = RuntimeError(f"Unexpected Gemini response: {r.text[:500]}")
		logger.warning("Gemini call failed: %s", last_error)
		if self._fallback_client is None:
			raise UpstreamUnavailable("text generation failed") from last_error
		return await self._fallback_generate(prompt, system, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(self, prompt: str, system: Optional[str], primary_error: Exception) -> str:
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		messages: List[Dict[str, str]] = []
		if system:
			messages.append({"role": "system", "content": system})
		messages.append({"role": "user", "content": prompt})
		payload: Dict[str, Any] = {"model": self._openrouter_model, "messages": messages}
		try:
			r = await self._fallback_client.post(self._openrouter_base_url, headers=headers, json=payload)
			r.raise_for_status()
			data = r.json()
			content = data["choices"][0]["message"]["content"]
			if not isinstance(content, str):
				raise ValueError("OpenRouter response has no message content")
			return content
		except Exception as fallback_err:
			logger.warning("OpenRouter fallback failed: %s", fallback_err)
			raise UpstreamUnavailable(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err


def _gemini_text(data: Dict[str, Any]) -> str:
	parts = data["candidates"][0]["content"]["parts"]
	return "".join(p.get("text", "") for p in parts)
