from __future__ import annotations

import typing as t
from dataclasses import dataclass, field

from pipetemplate.models import PipelineConfig, decode_stages
from pipetemplate.stages.graph import TemplateStage, build_stages
from pipetemplate.stages.ids import template_id
from pipetemplate.stages.naming import name_notifications, name_triggers
from pipetemplate.utils import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = "1"
DEFAULT_DESCRIPTION = "This template does not have a description"

GENERATED_TEMPLATE_HEADER = """# GENERATED BY pipetemplate
#
# The output generated by this tool should be used as a base for further
# modifications. It does not make assumptions as to what things can be made into
# variables, modules, partials or Jinja templates. This is your responsibility as
# the owner of the template.
#
# Some recommendations to massage the initial output:
#
# * Rename the pipeline stage IDs, notification names and trigger names to be
#   more meaningful. Enumerated stage IDs is ultimately a detriment for
#   long-term maintainability.
# * The template is currently ordered, so keys may not necessarily be structured
#   in the most sensible format. You may want to massage the template a little.
"""


@dataclass
class TemplateMetadata:
    name: str
    description: str
    owner: str
    scopes: t.List[str] = field(default_factory=list)


@dataclass
class TemplateConfiguration:
    concurrent_executions: t.Dict[str, bool]
    triggers: t.List[dict] = field(default_factory=list)
    parameters: t.List[t.Any] = field(default_factory=list)
    notifications: t.List[dict] = field(default_factory=list)
    expected_artifacts: t.List[t.Any] = field(default_factory=list)


@dataclass
class PipelineTemplate:
    id: str
    metadata: TemplateMetadata
    configuration: TemplateConfiguration
    stages: t.List[TemplateStage] = field(default_factory=list)
    variables: t.List[t.Any] = field(default_factory=list)
    schema: str = SCHEMA_VERSION
    protect: bool = False

    def to_dict(self) -> dict:
        m, c = self.metadata, self.configuration
        return {
            "schema": self.schema,
            "id": self.id,
            "metadata": {
                "name": m.name,
                "description": m.description,
                "owner": m.owner,
                "scopes": list(m.scopes),
            },
            "protect": self.protect,
            "configuration": {
                "concurrentExecutions": dict(c.concurrent_executions),
                "triggers": c.triggers,
                "parameters": c.parameters,
                "notifications": c.notifications,
                "expectedArtifacts": c.expected_artifacts,
            },
            "variables": self.variables,
            "stages": [s.to_dict() for s in self.stages],
        }


def convert_pipeline_to_template(
    pipeline_config: t.Union[PipelineConfig, t.Mapping[str, t.Any]],
) -> PipelineTemplate:
    """Build a v1 pipeline template from a concrete pipeline config.

    Every stage is validated before anything is assembled; a bad stage
    raises ``MalformedStage`` and no template is produced. Trigger and
    notification records from the input are copied, never modified.
    """
    if isinstance(pipeline_config, PipelineConfig):
        pc = pipeline_config
    else:
        pc = PipelineConfig.model_validate(dict(pipeline_config))

    raw_stages = decode_stages(pc.stages)

    template = PipelineTemplate(
        id=template_id(pc.application, pc.name),
        metadata=TemplateMetadata(
            name=pc.name,
            description=pc.description or DEFAULT_DESCRIPTION,
            owner=pc.lastModifiedBy,
            scopes=[pc.application],
        ),
        configuration=TemplateConfiguration(
            concurrent_executions={
                "parallel": pc.parallel,
                "limitConcurrent": pc.limitConcurrent,
            },
            triggers=name_triggers(pc.triggers),
            parameters=pc.parameters,
            notifications=name_notifications(pc.notifications),
            expected_artifacts=pc.expectedArtifacts,
        ),
        stages=build_stages(raw_stages),
    )
    logger.info(
        "converted pipeline application=%s name=%s -> template id=%s stages=%d triggers=%d notifications=%d",
        pc.application,
        pc.name,
        template.id,
        len(template.stages),
        len(template.configuration.triggers),
        len(template.configuration.notifications),
    )
    return template
