from __future__ import annotations
import os
from typing import List


def _sep() -> str:
    return ';' if os.name == 'nt' else ':'


# Defaults
_DEFAULT_LOOP_LIMIT = 100
_DEFAULT_FILE_SUFFIXES = ['.el']

SUPPRESSION_PREFIX = 'relint suppression:'


def values_from_env(var: str, defaults: List[str]) -> List[str]:
    raw = os.environ.get(var)
    if not raw:
        return list(defaults)
    sep = _sep()
    return [p.strip() for p in raw.split(sep) if p.strip()]


def get_loop_limit() -> int:
    """Ceiling on simulated iterations of an open-ended loop."""
    raw = os.environ.get('RELINT_LOOP_LIMIT')
    if not raw:
        return _DEFAULT_LOOP_LIMIT
    try:
        return max(1, int(raw))
    except ValueError:
        return _DEFAULT_LOOP_LIMIT


def get_file_suffixes() -> List[str]:
    """File name suffixes picked up when a directory is scanned."""
    return values_from_env('RELINT_FILE_SUFFIXES', _DEFAULT_FILE_SUFFIXES)
