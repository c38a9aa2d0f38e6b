"""Supported languages and how their source is staged and launched."""

import textwrap
from collections.abc import Callable
from dataclasses import dataclass, field

from common.config import Settings
from sandbox.errors import ValidationError


def _identity(code: str) -> str:
    return code


@dataclass(frozen=True)
class Language:
    """How to stage and launch one kind of submission.

    Attributes:
        name: Value of the request's ``language`` field.
        filename: Fixed file name the source is written to inside the workspace.
        interpreter: Picks the interpreter binary out of the settings.
        normalize: Transformation applied to the source before it is written.
        extra_env: Variables always set in the child's environment.
    """

    name: str
    filename: str
    interpreter: Callable[[Settings], str]
    normalize: Callable[[str], str] = _identity
    extra_env: dict[str, str] = field(default_factory=dict)

    def command(self, config: Settings, source_path: str) -> list[str]:
        """Argument vector that runs ``source_path``; the file is the sole argument."""
        return [self.interpreter(config), source_path]


PYTHON = Language(
    name="python",
    filename="main.py",
    interpreter=lambda config: config.interpreter_path,
    # Snippets pasted with a common indent are otherwise an IndentationError
    normalize=textwrap.dedent,
    extra_env={"PYTHONUNBUFFERED": "1", "PYTHONDONTWRITEBYTECODE": "1"},
)

LANGUAGES: dict[str, Language] = {PYTHON.name: PYTHON}


def supported_languages() -> list[str]:
    """Names accepted in the ``language`` field."""
    return sorted(LANGUAGES)


def get_language(name: str) -> Language:
    """Look up a language by name.

    Raises:
        ValidationError: If the language is not supported.
    """
    try:
        return LANGUAGES[name]
    except KeyError:
        raise ValidationError(
            f"Unsupported language '{name}'. Supported: {supported_languages()}"
        ) from None
