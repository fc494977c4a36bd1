"""
Streams the text explanation for a topic as an ordered sequence of fragments.
"""

from __future__ import annotations

from typing import AsyncIterator

from agents.core.errors import UpstreamStreamError
from agents.core.llm import LLM
from agents.explainer_agent.prompts import build_explanation_prompt


class ChunkProducer:
    """
    One upstream streaming call per `stream()`; no resume, no seek.
    Fragments are yielded as they arrive; nothing is buffered here.
    """

    def __init__(self, llm: LLM, words: int = 100):
        self.llm = llm
        self.words = words

    async def stream(self, topic: str) -> AsyncIterator[str]:
        sent = 0
        try:
            async for chunk in self.llm.stream(build_explanation_prompt(topic, self.words)):
                if not chunk:
                    continue
                sent += 1
                yield chunk
        except UpstreamStreamError:
            raise
        except Exception as e:
            raise UpstreamStreamError(topic, str(e) or e.__class__.__name__, fragments_sent=sent) from e
