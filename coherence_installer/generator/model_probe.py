"""Detection of an existing user model in the host project.

The probe answers one question: does a module called e.g. ``MyApp.User``
already exist?  It first looks for a compiled ``Elixir.MyApp.User.beam`` in
the Mix build directory and then falls back to scanning source files for a
matching ``defmodule`` declaration.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class ModelProbe(Protocol):
    """Anything that can tell whether a model module already exists."""

    def exists(self, qualified_name: str, search_path: Path) -> bool: ...


class SourceModelProbe:
    """Probe backed by the Mix build directory and a source-directory scan."""

    def __init__(self, build_path: Path | None = None) -> None:
        self.build_path = build_path

    def exists(self, qualified_name: str, search_path: Path) -> bool:
        if self.is_compiled(qualified_name):
            logger.debug("Found compiled module %s", qualified_name)
            return True
        found = self.is_declared(qualified_name, search_path)
        logger.debug("Source scan for %s under %s: %s", qualified_name, search_path, found)
        return found

    def is_compiled(self, qualified_name: str) -> bool:
        """Return ``True`` if a ``.beam`` file for the module is in the build directory."""
        if self.build_path is None or not self.build_path.is_dir():
            return False
        beam = f"Elixir.{qualified_name}.beam"
        return any(self.build_path.glob(f"*/lib/*/ebin/{beam}"))

    @staticmethod
    def is_declared(qualified_name: str, search_path: Path) -> bool:
        """Return ``True`` if any file directly under *search_path* declares the module."""
        if not search_path.is_dir():
            return False
        pattern = re.compile(rf"defmodule\s*{re.escape(qualified_name)}(?![\w.])")
        for path in sorted(search_path.iterdir()):
            if not path.is_file():
                continue
            try:
                contents = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            if pattern.search(contents):
                return True
        return False


class StaticModelProbe:
    """Probe that returns a fixed answer, for tests and dry runs."""

    def __init__(self, found: bool) -> None:
        self.found = found

    def exists(self, qualified_name: str, search_path: Path) -> bool:
        return self.found
