from abc import ABC, abstractmethod
from typing import AsyncIterator

class LLM(ABC):
    """
    Text model contract used by the explainer: a one-shot answer (sync or async)
    and an incremental stream of text fragments.
    """
    @abstractmethod
    def generate(self, prompt: str) -> str:
        raise NotImplementedError

    @abstractmethod
    async def agenerate(self, prompt: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        raise NotImplementedError
