"""Common contract for transcription producers."""

from abc import ABC, abstractmethod


class TranscriptionProducer(ABC):
    """Turns an audio URL into text. Raises ProducerError on failure."""

    #: Value stored in ``Transcription.source`` for text from this producer
    source: str = "mock"

    @abstractmethod
    async def produce(self, audio_url: str, language: str = "en-US") -> str:
        """Return transcription text for the audio at ``audio_url``."""
