"""
chronicle.engine.mentions — @handle extraction
===============================================
"""

from __future__ import annotations

import re

_MENTION_REGEX = re.compile(r"@([A-Za-z0-9_]+)")


def extract_mentions(text: str | None) -> set[str]:
    """Return the distinct ``@handle`` tokens in *text* (without the ``@``).

    Case-sensitive: ``@Alice`` and ``@alice`` are different handles.
    """
    if not text:
        return set()
    return set(_MENTION_REGEX.findall(text))
