"""
Prompts for the explainer agent: one for the image description, one for the text answer.
"""

from __future__ import annotations

IMAGE_PROMPT_TEMPLATE = (
    'Create a simple, descriptive prompt for an AI image generator on the topic of "{topic}". '
    'The prompt should be a short phrase, like "A photorealistic image of..." or "An oil painting of...".'
)

EXPLANATION_PROMPT_TEMPLATE = 'Explain the topic "{topic}" in a clear and simple way, in about {words} words.'


def build_image_prompt(topic: str) -> str:
    return IMAGE_PROMPT_TEMPLATE.format(topic=topic)


def build_explanation_prompt(topic: str, words: int = 100) -> str:
    return EXPLANATION_PROMPT_TEMPLATE.format(topic=topic, words=words)
