"""Generative judge provider abstraction."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from adscreen.models.schemas import Finding


class AdJudgeProvider(ABC):
    """Provider abstraction for vision-capable models that review advertisements."""

    name: str = "unknown"

    @abstractmethod
    async def judge(
        self,
        *,
        ad_name: str,
        image_data_url: str,
        ocr_text: str,
        guideline_text: str,
        allowed_reference_ids: Sequence[str],
    ) -> str:
        """Return the model's raw text answer; parsing is the caller's job."""

    @abstractmethod
    async def summarize(
        self,
        *,
        ad_name: str,
        ocr_text: str,
        findings: List[Finding],
        legal_summary: str,
    ) -> str:
        """Return a short narrative rationale for the given findings."""


def get_judge_provider(provider_name: Optional[str] = None) -> AdJudgeProvider:
    """Resolve provider by name, defaulting to env-configured provider."""

    resolved = (provider_name or os.getenv("AI_PROVIDER") or "openai").strip().lower()
    if resolved in {"openai", "openai_compatible"}:
        from adscreen.services.openai_judge_provider import OpenAIJudgeProvider

        return OpenAIJudgeProvider()
    raise ValueError(f"Unsupported AI provider: {resolved}")
