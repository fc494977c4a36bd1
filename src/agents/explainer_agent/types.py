from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuxiliaryMetadata:
    """
    Out-of-band artifact resolved before any text is streamed.
    `artifact_reference` is a URI (an image URL for now).
    """

    artifact_reference: str
