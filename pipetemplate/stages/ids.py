from __future__ import annotations

import re

_NON_WORD = re.compile(r"\W", re.ASCII)


def template_id(application: str, name: str) -> str:
    """``<application>-<name>`` with everything but ``[A-Za-z0-9_]`` stripped from name."""
    return f"{application}-{_NON_WORD.sub('', name)}"


def stage_id(stage_type: str, ref_id: str) -> str:
    # No separator: ("foo1", "23") and ("foo", "123") collide. Kept for
    # compatibility with templates generated by earlier versions.
    return stage_type + ref_id
