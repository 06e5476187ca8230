"""Exception hierarchy for the Coherence installer.

Validation errors (``UnknownOptionError``, ``InvalidModelSpecError``,
``MissingBaseNamespaceError``) are raised while resolving options and
building the configuration, before any file is touched.  ``StageError`` wraps
failures that happen inside a pipeline stage.
"""

from __future__ import annotations


class InstallerError(Exception):
    """Base class for every error raised by the installer."""


class UnknownOptionError(InstallerError):
    """Raised when option names match no preset, capability, or control flag."""

    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        super().__init__(f"Unknown option(s): {', '.join(self.names)}")


class InvalidModelSpecError(InstallerError):
    """Raised when a ``--model`` override is not exactly ``"Name table"``."""

    def __init__(self, spec: str) -> None:
        self.spec = spec
        super().__init__(
            f"Invalid model specification {spec!r}: the --model option expects both "
            'singular and plural names, for example --model="Account accounts"'
        )


class MissingBaseNamespaceError(InstallerError):
    """Raised when no base namespace (application module) could be determined."""

    def __init__(self) -> None:
        super().__init__(
            "Could not determine the base module of the application; "
            "pass --module or run inside a project with a mix.exs file"
        )


class StageError(InstallerError):
    """Raised when a pipeline stage fails irrecoverably."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage}: {message}")
