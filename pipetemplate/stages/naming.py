from __future__ import annotations

import typing as t


def name_triggers(triggers: t.Iterable[t.Mapping[str, t.Any]]) -> t.List[dict]:
    """Name each trigger ``unnamed<i>`` by position, replacing any existing name."""
    out: t.List[dict] = []
    for i, trig in enumerate(triggers or []):
        it = dict(trig)
        it["name"] = f"unnamed{i}"
        out.append(it)
    return out


def name_notifications(notifications: t.Iterable[t.Mapping[str, t.Any]]) -> t.List[dict]:
    """Name each notification ``<type><i>`` by position, replacing any existing name."""
    out: t.List[dict] = []
    for i, notif in enumerate(notifications or []):
        it = dict(notif)
        it["name"] = f"{notif.get('type')}{i}"
        out.append(it)
    return out
