import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from recipe_journal.app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


# Remove ASCII control chars that frequently break json.loads (except \n, \r, \t)
def _strip_invalid_control_chars(s: str) -> str:
    if not isinstance(s, str):
        return str(s)
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", s)


def strip_code_fence(text: str) -> str:
    txt = text.strip()
    if txt.startswith("```"):
        # Remove leading fence with optional language tag
        txt = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", txt, count=1)
        # Remove trailing fence
        txt = re.sub(r"\s*```$", "", txt, count=1).strip()
    return txt


def _try_local_json_repair(raw: str) -> Optional[str]:
    cleaned = strip_code_fence(_strip_invalid_control_chars(raw))
    if cleaned.startswith("{") and cleaned.endswith("}"):
        try:
            json.loads(cleaned)
            return cleaned
        except json.JSONDecodeError:
            pass
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        snippet = cleaned[start : end + 1]
        try:
            json.loads(snippet)
            return snippet
        except json.JSONDecodeError:
            return None
    return None


def parse_json_content(raw: str) -> Dict[str, Any]:
    """Parse a model reply as a JSON object, tolerating fences and surrounding prose."""
    if not raw or not raw.strip():
        raise ValueError("Empty response from model")
    cleaned = strip_code_fence(_strip_invalid_control_chars(raw))
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        repaired = _try_local_json_repair(raw)
        if repaired is None:
            raise ValueError("Invalid JSON response from model")
        data = json.loads(repaired)
    if not isinstance(data, dict):
        raise ValueError("Model response is not a JSON object")
    return data


class LLMClient:
    """Minimal client for an OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.llm_api_key:
            headers["Authorization"] = f"Bearer {self.settings.llm_api_key}"
        return headers

    async def complete(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send one system+user exchange and return the assistant's text."""
        if not self.settings.llm_base_url:
            raise ValueError("LLM_BASE_URL must be set to use the language model")

        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        payload = {
            "model": self.settings.llm_model_name,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "messages": messages,
            "stream": False,
        }
        seconds = self.settings.llm_timeout_seconds
        timeout = httpx.Timeout(seconds, read=seconds, connect=10.0)
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            resp = await client.post(
                f"{self.settings.llm_base_url.rstrip('/')}/v1/chat/completions",
                json=payload,
                headers=self._headers(),
            )
        resp.raise_for_status()
        data = resp.json()

        if isinstance(data, dict) and "error" in data:
            error_info = data["error"]
            if isinstance(error_info, dict):
                error_message = error_info.get("message", "Unknown error")
            else:
                error_message = str(error_info)
            logger.warning("LLM returned error: %s", str(error_message)[:500])
            raise ValueError(f"LLM returned error: {error_message}")

        content = (data.get("choices") or [{}])[0].get("message", {}).get("content")
        if not content or not str(content).strip():
            raise ValueError("Empty response from model")
        return str(content)
