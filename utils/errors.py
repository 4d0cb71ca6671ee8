"""
Exception taxonomy for exam-listening-studio.

Job-level errors (subclasses of JobError) are caught by the batch runner and
recorded on the failing job's result. Everything else propagates to the caller.
"""


class StudioError(Exception):
    """Base class for all studio errors."""


class JobError(StudioError):
    """A single TTS job failed; never fatal to a batch."""


class EmptyInputError(JobError):
    """Job text was blank and was never sent to the engine."""

    def __init__(self, message: str = "empty text"):
        super().__init__(message)


class EngineExecutionError(JobError):
    """The TTS engine exited non-zero or raised."""


class EngineTimeoutError(JobError):
    """The TTS engine did not finish within the per-job time bound."""


class EmptyOutputError(JobError):
    """The engine reported success but the audio file is missing or empty."""


class InvalidBatchError(StudioError, ValueError):
    """Malformed call arguments; raised before anything is dispatched."""


class UnknownVoiceError(InvalidBatchError):
    def __init__(self, voice: str, available):
        self.voice = voice
        self.available = list(available)
        super().__init__(f"unknown voice id {voice!r}, available: {', '.join(self.available)}")


class InvalidRateError(InvalidBatchError):
    def __init__(self, rate):
        self.rate = rate
        super().__init__(f"invalid speech rate {rate!r}, expected a signed percentage like +10% or -20%")


class EngineUnavailableError(StudioError):
    """The configured TTS engine cannot be found."""


class UnsupportedDocumentError(StudioError, ValueError):
    """Document type is not one of .pdf, .docx or .txt."""


class WordNotFoundError(StudioError, KeyError):
    def __init__(self, word: str):
        self.word = word
        super().__init__(word)

    def __str__(self):
        return f"word not found in word book: {self.word}"


class ConfigError(StudioError, ValueError):
    """Configuration file or environment value is invalid."""


class DocumentReadError(StudioError):
    """A supported document could not be parsed."""
