import time
import uuid
from typing import Any, Dict, Optional

from pipetemplate.converter import GENERATED_TEMPLATE_HEADER, convert_pipeline_to_template
from pipetemplate.spinnaker import ClientConfig, SpinnakerClient
from pipetemplate.utils import get_logger, load_config, load_document, render_template_yaml, write_output

logger = get_logger(__name__)


def _make_client(cfg: Dict[str, Any], flags: Optional[Dict[str, Any]]) -> SpinnakerClient:
    return SpinnakerClient(ClientConfig.resolve(flags=flags, file_cfg=cfg))


def _emit(template: Dict[str, Any], cfg: Dict[str, Any], output: Optional[str], header: Optional[bool]) -> Optional[str]:
    if header is None:
        header = cfg.get("output", {}).get("header", True)
    text = render_template_yaml(template, GENERATED_TEMPLATE_HEADER if header else "")
    path = write_output(text, output)
    if path:
        logger.info("template written path=%s", path)
    return path


def convert_document(pipeline_config: Dict[str, Any]) -> Dict[str, Any]:
    """Convert an in-memory pipeline config into a template mapping."""
    return convert_pipeline_to_template(pipeline_config).to_dict()


def run_convert(
    application: str,
    pipeline_name: str,
    *,
    config_path: Optional[str] = None,
    flags: Optional[Dict[str, Any]] = None,
    output: Optional[str] = None,
    header: Optional[bool] = None,
) -> Dict[str, Any]:
    """Fetch a pipeline config from Spinnaker and write it out as a template."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== convert start id=%s application=%s pipeline=%s ===", run_id, application, pipeline_name)

    try:
        cfg = load_config(config_path)
        client = _make_client(cfg, flags)

        t0 = time.monotonic()
        pipeline_config = client.get_pipeline_config(application, pipeline_name)
        logger.info("fetched took_ms=%d", int((time.monotonic() - t0) * 1000))

        template = convert_document(pipeline_config)
        _emit(template, cfg, output, header)
        return template
    except Exception as e:
        logger.error("convert failed: %s", e)
        raise
    finally:
        logger.info("=== convert end id=%s ===", run_id)


def run_convert_file(
    input_path: str,
    *,
    config_path: Optional[str] = None,
    output: Optional[str] = None,
    header: Optional[bool] = None,
) -> Dict[str, Any]:
    """Convert a pipeline config saved as JSON or YAML; no network access."""
    cfg = load_config(config_path)
    pipeline_config = load_document(input_path)
    if not isinstance(pipeline_config, dict):
        raise ValueError(f"{input_path}: expected a pipeline config object")
    template = convert_document(pipeline_config)
    _emit(template, cfg, output, header)
    return template


def run_publish(
    template_path: str,
    *,
    config_path: Optional[str] = None,
    flags: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """POST a template file to Spinnaker's template registry."""
    cfg = load_config(config_path)
    template = load_document(template_path)
    if not isinstance(template, dict) or not template.get("id"):
        raise ValueError(f"{template_path}: not a pipeline template (missing id)")
    client = _make_client(cfg, flags)
    try:
        return client.publish_template(template)
    except Exception as e:
        logger.error("publish failed id=%s: %s", template.get("id"), e)
        raise
