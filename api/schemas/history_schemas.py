from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HistoryEntryResponse(BaseModel):
    """Wire shape: {id, topic, explanation, imageUrl, createdAt}."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    topic: str
    explanation: str
    image_url: str
    created_at: str
