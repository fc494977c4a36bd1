"""
Resolves the auxiliary image reference for a topic with a single LLM call.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from agents.core.errors import UpstreamMetadataError
from agents.core.llm import LLM
from agents.explainer_agent.prompts import build_image_prompt
from agents.explainer_agent.types import AuxiliaryMetadata

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_BASE_URL = "https://image.pollinations.ai/prompt"


def clean_description(raw: str) -> str:
    """Collapse the model's answer to a single trimmed line."""
    return " ".join(part.strip() for part in (raw or "").splitlines() if part.strip()).strip()


def build_image_url(description: str, base_url: str = DEFAULT_IMAGE_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{quote(description, safe='')}"


class MetadataResolver:
    """
    Turns a topic into exactly one AuxiliaryMetadata.
    Single attempt; any upstream failure becomes UpstreamMetadataError.
    """

    def __init__(self, llm: LLM, image_base_url: str = DEFAULT_IMAGE_BASE_URL):
        self.llm = llm
        self.image_base_url = image_base_url

    async def resolve(self, topic: str) -> AuxiliaryMetadata:
        try:
            raw = await self.llm.agenerate(build_image_prompt(topic))
        except Exception as e:
            raise UpstreamMetadataError(topic, str(e) or e.__class__.__name__) from e

        description = clean_description(raw if isinstance(raw, str) else str(raw or ""))
        if not description:
            raise UpstreamMetadataError(topic, "empty image description")

        url = build_image_url(description, self.image_base_url)
        logger.debug("resolved image url topic=%r url=%s", topic, url)
        return AuxiliaryMetadata(artifact_reference=url)
