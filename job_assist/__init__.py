"""AI assistance for job applications – JSON extraction, validation and fallback pipeline."""

from .extractor import (
    ExtractionError,
    JsonSyntaxError,
    NoJsonFoundError,
    UnbalancedJsonError,
    extract,
)
from .shapes import Field, Shape, ValidationFailure, validate
from .completion import OllamaClient, ServiceUnavailableError
from .pipeline import PipelineResult, PreconditionError, Status, run
