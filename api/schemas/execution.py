"""Pydantic schemas for code execution."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ExecutionRequest(BaseModel):
    """Request to execute code.

    Size and language checks happen in the coordinator so that they are
    reported as rejections rather than schema errors.
    """

    language: str = Field(..., description="Language of the submitted code (e.g. 'python')")
    code: str = Field(..., description="Source code to execute")


class ExecutionResponse(BaseModel):
    """Output of a program that finished or was killed at its deadline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stdout: str = Field(default="", description="Standard output, possibly truncated")
    stderr: str = Field(default="", description="Standard error, possibly truncated")
    exit_code: int | None = Field(
        default=None, description="Exit code, or null if killed by a signal or timeout"
    )
    signal: str | None = Field(
        default=None, description="Name of the signal that terminated the program"
    )
    timed_out: bool = Field(default=False, description="Whether the deadline was exceeded")
    truncated: bool = Field(default=False, description="Whether any output was discarded")
    duration_ms: float = Field(default=0.0, description="Wall-clock run time in milliseconds")


class ErrorResponse(BaseModel):
    """Body returned for rejected, overloaded and failed requests."""

    error: str


class LanguagesResponse(BaseModel):
    """Languages accepted by POST /execute."""

    languages: list[str]
