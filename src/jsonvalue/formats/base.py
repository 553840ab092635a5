"""
Base format interface.

A format strategy turns text into a tree of Values and renders a tree back to
text. Strategies build trees only through the public construction API of
jsonvalue.dom; they are producers of Values, not methods on them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..dom import Value


class FormatStrategy(ABC):
    """Base class for text format handlers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name."""
        ...

    @property
    @abstractmethod
    def extensions(self) -> list[str]:
        """File extensions this format handles (e.g., ['.json'])."""
        ...

    def detect(self, content: str) -> bool:
        """
        Magic detection: returns True if content looks like this format.
        Default implementation returns False (rely on extension only).
        """
        return False

    @abstractmethod
    def parse(self, content: str) -> Value:
        """
        Parse content into a tree of Values.
        Returns the detached root of the tree.
        """
        ...

    def render(self, value: Value) -> str:
        """Render a tree as text. Default: the value's canonical text."""
        return value.to_string()
