"""
===========================================
Parameter binding for generated statements.
===========================================

Values handed to ``Query.set()``, ``Query.values()`` and friends are never
interpolated into SQL text. Each one is stored under a freshly generated
placeholder (``:v<number>``) and the placeholder is written into the
statement instead.

Generated names carry a ``v`` prefix so they can't clash with the named
placeholders callers type themselves (``:id``, ``:email``). The number comes
from a high-entropy source by default; tests inject a counter to get
reproducible placeholder names.

Example:
    >>> from itertools import count
    >>> binder = ParameterBinder(source=count(1).__next__)
    >>> binder.bind('alice@example.com')
    ':v1'
    >>> binder.bindings
    {':v1': 'alice@example.com'}
"""

import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

PLACEHOLDER_PREFIX = ':v'

_system_random = random.SystemRandom()


def _random_source() -> int:
    return _system_random.getrandbits(32)


@dataclass(frozen=True)
class SQLLiteral:
    """A value written into the statement verbatim instead of being bound.

    Example:
        >>> Query('update').table('users').set('seen_at', SQLLiteral('NOW()'))
    """

    text: str

    def __str__(self) -> str:
        return self.text


class ParameterBinder:
    """Generates placeholder names and records what they are bound to.

    Attributes:
        bindings: Placeholder name to value, in insertion order
    """

    def __init__(
        self,
        bindings: Optional[Dict[str, Any]] = None,
        source: Optional[Callable[[], int]] = None
    ):
        """
        Args:
            bindings: Mapping to record bindings into (shared with the owner)
            source: Zero-argument callable returning integers for names
        """
        self.bindings = bindings if bindings is not None else {}
        self._source = source or _random_source

    def placeholder(self) -> str:
        """Return a placeholder name not yet present in ``bindings``."""
        name = f"{PLACEHOLDER_PREFIX}{self._source()}"
        while name in self.bindings:
            name = f"{PLACEHOLDER_PREFIX}{self._source()}"
        return name

    def bind(self, value: Any) -> str:
        """Bind ``value`` under a new placeholder and return the placeholder."""
        name = self.placeholder()
        self.bindings[name] = value
        return name

    def token(self, value: Any) -> str:
        """Return the SQL token for ``value``.

        Literals come back as their text; anything else is bound.
        """
        if isinstance(value, SQLLiteral):
            return value.text
        return self.bind(value)
