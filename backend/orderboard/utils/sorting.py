from __future__ import annotations
from typing import Callable, Dict, List, Optional, Sequence

from orderboard.errors import ValidationError


def apply_multi_sort(rows: Sequence, sort_expr: Optional[str], allowed: Dict[str, Callable], tie_breaker: Callable) -> List:
    """Apply multi-field sort to an in-memory row list.
    sort_expr: comma-separated tokens, each optionally prefixed with '-'.
    allowed: mapping of field key -> key function (or a resolver taking the key for dynamic fields).
    tie_breaker: key function appended for deterministic ordering.
    """
    out = sorted(rows, key=tie_breaker)
    if not sort_expr:
        return out
    keys = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        fn = allowed.get(key)
        if fn is None:
            raise ValidationError(f'Invalid sort field {key}')
        keys.append((fn, desc))
    # Stable sorts applied from the least significant key to the most significant one
    for fn, desc in reversed(keys):
        out.sort(key=fn, reverse=desc)
    return out
