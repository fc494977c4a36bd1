"""
Error taxonomy for the generation pipeline.

A metadata failure means no body bytes were ever sent. A stream failure means
some fragments may already be on the wire.
"""


class GenerationError(Exception):
    """Base class for failures raised by upstream generation providers."""


class AuthError(Exception):
    """Missing or invalid bearer credential."""


class UpstreamMetadataError(GenerationError):
    """The image-description call failed; nothing has been streamed yet."""

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(f"metadata resolution failed for topic={topic!r}: {reason}")


class UpstreamStreamError(GenerationError):
    """The text stream failed after `fragments_sent` fragments were produced."""

    def __init__(self, topic: str, reason: str, fragments_sent: int = 0):
        self.topic = topic
        self.reason = reason
        self.fragments_sent = fragments_sent
        super().__init__(
            f"text stream failed for topic={topic!r} after {fragments_sent} fragments: {reason}"
        )
