"""Build environment variable expansion for deferred qualifiers."""

from __future__ import annotations

import re
from typing import Mapping, Optional

_MACRO_PATTERN = re.compile(r"\$(?:\{([A-Za-z0-9_]+)\}|([A-Za-z0-9_]+))")


def replace_macro(template: Optional[str], environment: Mapping[str, str]) -> Optional[str]:
    """Expand ``$NAME`` and ``${NAME}`` references from ``environment``.

    Unknown variables are left as written.
    """
    if template is None:
        return None

    def _sub(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        value = environment.get(name)
        return match.group(0) if value is None else value

    return _MACRO_PATTERN.sub(_sub, template)
