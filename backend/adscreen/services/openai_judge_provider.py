"""OpenAI-compatible chat completions judge provider."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from adscreen import config
from adscreen.models.schemas import Finding
from adscreen.services.judge_provider import AdJudgeProvider
from adscreen.services.legal_references import LEGAL_REFERENCE_MAP

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """
You are an assistant to a medical advertising review board. Using only the information
below and the attached image, judge how likely the advertisement violates the Medical
Service Act.
- Use only the supplied legal criteria and reference IDs; never invent new clauses or numbers.
- "text" should quote the wording exactly as it appears in the image whenever possible.
- Output a single JSON object only (no explanations, no code fences).

Output schema:
{
  "passScore": 0-100,
  "riskLevel": "high"|"medium"|"low",
  "findings": [
    {
      "text": "phrase",
      "violationType": "violation type",
      "riskLevel": "high"|"medium"|"low",
      "referenceId": "ML56-02",
      "rationale": "short reason"
    }
  ],
  "rationale": "2-4 sentence reference-only summary"
}
"""

SUMMARY_PROMPT = """
Below are the OCR text and forbidden-phrase detection results for a medical advertisement.
Write a 2-4 sentence review rationale based on this information.
Avoid exaggerated or definitive judgments and state that the result is for reference only.
"""


def normalize_base_url(base_url: str) -> str:
    """
    Accepts either:
    - https://host/v1
    - https://host
    Returns a base url that ends with /v1.
    """
    if not base_url:
        return ""
    b = base_url.rstrip("/")
    if b.endswith("/v1"):
        return b
    return b + "/v1"


def describe_reference_ids(reference_ids: Sequence[str]) -> str:
    lines = []
    for ref_id in reference_ids:
        ref = LEGAL_REFERENCE_MAP.get(ref_id)
        lines.append(f"{ref_id}: {ref.title} - {ref.clause}" if ref else ref_id)
    return "\n".join(lines)


def build_judge_prompt(ad_name: str, ocr_text: str, guideline_text: str, allowed_reference_ids: Sequence[str]) -> str:
    return "\n".join(
        [
            ANALYSIS_PROMPT.strip(),
            "",
            f"Ad name: {ad_name}",
            f"OCR text (for reference): {ocr_text or 'none'}",
            "",
            "Legal criteria summary:",
            guideline_text,
            "",
            "Allowed legal reference IDs:",
            describe_reference_ids(allowed_reference_ids),
        ]
    )


def build_chat_payload(model: str, content: List[Dict[str, Any]], temperature: float = 0.0) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": [{"role": "user", "content": content}],
        "temperature": temperature,
        "max_tokens": 2048,
    }


class OpenAIJudgeProvider(AdJudgeProvider):
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_sec: Optional[float] = None,
        retry_count: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self.timeout_sec = timeout_sec or config.AI_TIMEOUT_SEC
        self.retry_count = max(0, retry_count)
        self._transport = transport

    def _resolve(self) -> tuple[str, str, str]:
        env_key, env_base, env_model = config.get_ai_config()
        api_key = (self._api_key if self._api_key is not None else env_key or "").strip()
        base_url = normalize_base_url(self._base_url or env_base or "")
        model = (self._model or env_model or "").strip()
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not configured.")
        if not base_url:
            raise RuntimeError("OPENAI_BASE_URL is not configured.")
        if not model:
            raise RuntimeError("OPENAI_MODEL is not configured.")
        return api_key, base_url, model

    async def judge(
        self,
        *,
        ad_name: str,
        image_data_url: str,
        ocr_text: str,
        guideline_text: str,
        allowed_reference_ids: Sequence[str],
    ) -> str:
        _, _, model = self._resolve()
        prompt = build_judge_prompt(ad_name, ocr_text, guideline_text, allowed_reference_ids)
        content = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_data_url}},
        ]
        return await self._complete(build_chat_payload(model, content))

    async def summarize(
        self,
        *,
        ad_name: str,
        ocr_text: str,
        findings: List[Finding],
        legal_summary: str,
    ) -> str:
        _, _, model = self._resolve()
        findings_json = (
            json.dumps([f.model_dump(exclude_none=True) for f in findings], ensure_ascii=False)
            if findings
            else "none"
        )
        content = [
            {"type": "text", "text": SUMMARY_PROMPT.strip()},
            {"type": "text", "text": f"Ad name: {ad_name}"},
            {"type": "text", "text": f"OCR text: {ocr_text or 'none'}"},
            {"type": "text", "text": f"Detection results: {findings_json}"},
            {"type": "text", "text": f"Legal summary:\n{legal_summary}"},
        ]
        return await self._complete(build_chat_payload(model, content, temperature=0.2))

    async def _complete(self, payload: Dict[str, Any]) -> str:
        api_key, base_url, _ = self._resolve()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        url = f"{base_url}/chat/completions"

        last_exc: Exception | None = None
        for _ in range(self.retry_count + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport) as client:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    data = response.json()
                return self._extract_text(data)
            except httpx.HTTPStatusError as exc:
                # Client errors will not succeed on retry.
                if exc.response.status_code < 500:
                    raise RuntimeError(
                        f"AI request rejected ({exc.response.status_code}): {exc.response.text[:300]}"
                    ) from exc
                last_exc = exc
            except httpx.HTTPError as exc:
                last_exc = exc
            logger.debug("AI request attempt failed: %s", last_exc)

        raise RuntimeError(f"AI request failed after retries: {last_exc}") from last_exc

    def _extract_text(self, raw: Dict[str, Any]) -> str:
        choices = raw.get("choices") or []
        if not choices:
            raise ValueError("AI response has no choices.")
        message = choices[0].get("message") or {}
        return self._content_to_text(message.get("content")).strip()

    def _content_to_text(self, content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: List[str] = []
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") == "text":
                    parts.append(str(item.get("text") or ""))
            return "\n".join(parts)
        return str(content or "")
