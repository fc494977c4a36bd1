from agents.explainer_agent.chunk_producer import ChunkProducer
from agents.explainer_agent.metadata_resolver import MetadataResolver
from agents.explainer_agent.types import AuxiliaryMetadata

__all__ = [
    "AuxiliaryMetadata",
    "ChunkProducer",
    "MetadataResolver",
]
