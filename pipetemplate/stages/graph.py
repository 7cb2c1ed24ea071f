from __future__ import annotations

import typing as t
from dataclasses import dataclass, field

from pipetemplate.models import RawStage
from pipetemplate.stages.config import extract_config
from pipetemplate.stages.ids import stage_id
from pipetemplate.utils import get_logger

logger = get_logger(__name__)


@dataclass
class TemplateStage:
    id: str
    type: str
    name: str
    depends_on: t.List[str] = field(default_factory=list)
    config: t.Dict[str, t.Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "dependsOn": list(self.depends_on),
            "name": self.name,
            "config": self.config,
        }


def _resolve(stages: t.Sequence[RawStage], ref_id: str) -> t.Optional[str]:
    for s in stages:
        if s.refId == ref_id:
            return stage_id(s.type, s.refId)
    return None


def build_depends_on(stages: t.Sequence[RawStage], requisites: t.Iterable[str]) -> t.List[str]:
    """Translate requisite refIds into stage IDs, in requisite order.

    Unknown refIds are dropped; repeated ones keep their first position.
    """
    out: t.List[str] = []
    for ref in requisites:
        target = _resolve(stages, ref)
        if target is None:
            logger.debug("graph: dropping unresolved requisite refId=%s", ref)
            continue
        if target not in out:
            out.append(target)
    return out


def build_stages(stages: t.Sequence[RawStage]) -> t.List[TemplateStage]:
    out: t.List[TemplateStage] = []
    for s in stages:
        out.append(
            TemplateStage(
                id=stage_id(s.type, s.refId),
                type=s.type,
                name=s.name,
                depends_on=build_depends_on(stages, s.requisites),
                config=extract_config(s.fields()),
            )
        )
    logger.debug("graph: built stages=%d", len(out))
    return out
