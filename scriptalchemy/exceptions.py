"""
scriptalchemy.exceptions - Custom exception classes.

All ScriptAlchemy-specific exceptions inherit from ScriptAlchemyError.
"""


class ScriptAlchemyError(Exception):
    """Base exception for all ScriptAlchemy errors."""

    pass


class ConfigError(ScriptAlchemyError):
    """Configuration loading or validation error."""

    pass


class CredentialError(ConfigError):
    """Required API credential is missing."""

    def __init__(self, backend: str, env_var: str):
        self.backend = backend
        self.env_var = env_var
        super().__init__(
            f"API key for '{backend}' backend is missing. Set the {env_var} environment variable."
        )


class ProjectError(ScriptAlchemyError):
    """Project directory or manifest error."""

    pass


class TranscriptFormatError(ScriptAlchemyError):
    """Transcript text could not be parsed into segments."""

    pass


class DurationRangeError(ScriptAlchemyError):
    """Duration limit left no segments to analyze."""

    def __init__(self, limit_minutes: int):
        self.limit_minutes = limit_minutes
        super().__init__(
            f"No segments found within the first {limit_minutes} minute(s) of the transcript."
        )


class LLMError(ScriptAlchemyError):
    """LLM backend or prompt error."""

    pass


class LLMResponseError(LLMError):
    """LLM returned malformed or unexpected response."""

    pass


class AnalysisError(ScriptAlchemyError):
    """Script analysis run failed."""

    pass


class TemplateGenerationError(ScriptAlchemyError):
    """Master template generation failed."""

    pass
