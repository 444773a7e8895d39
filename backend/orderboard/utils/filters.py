from __future__ import annotations
from typing import Any, Dict, List, Sequence

from orderboard.errors import ValidationError


def apply_filters(rows: Sequence, specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]) -> List:
    """Generic in-memory filter builder.

    specs: { param_name: { 'match': callable(row, value)->bool, 'coerce': type/func, 'validate': callable(optional) } }
    """
    out = list(rows)
    for name, meta in specs.items():
        if name not in params or params[name] in (None, ''):
            continue
        val = params[name]
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except Exception:
                raise ValidationError(f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            raise ValidationError(f'{name} invalid')
        out = [r for r in out if meta['match'](r, val)]
    return out
