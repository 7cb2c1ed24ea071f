from __future__ import annotations

import typing as t

from pipetemplate.models import STRUCTURAL_STAGE_KEYS


def extract_config(raw_stage: t.Mapping[str, t.Any]) -> dict:
    """Shallow copy of a stage record without its structural keys."""
    return {k: v for k, v in raw_stage.items() if k not in STRUCTURAL_STAGE_KEYS}
