import os
import re
import sys
import json
import datetime as dt
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Optional, Any

import yaml
from jsonschema import validate, Draft202012Validator
from jsonschema.exceptions import ValidationError

# ---------- File helpers ----------

def load_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def load_document(path: str) -> Any:
    """Load a JSON or YAML document; JSON is picked by the ``.json`` suffix."""
    text = load_file(path)
    if path.lower().endswith(".json"):
        return json.loads(text)
    return yaml.safe_load(text)

# ---------- Config validation ----------

def validate_config(cfg: dict):
    here = os.path.dirname(os.path.abspath(__file__))
    schema_path = os.path.join(here, "schemas", "config.schema.json")
    schema = json.loads(load_file(schema_path))
    try:
        validate(instance=cfg, schema=schema, cls=Draft202012Validator)
    except ValidationError as e:
        raise ValueError(f"Config validation error: {e.message} at {list(e.path)}") from e

def load_config(path: Optional[str]) -> dict:
    if not path:
        return {}
    cfg = yaml.safe_load(load_file(path)) or {}
    validate_config(cfg)
    return cfg

# ---------- Output writer ----------

def render_template_yaml(template: dict, header: str = "") -> str:
    body = yaml.safe_dump(template, sort_keys=False, default_flow_style=False, allow_unicode=True)
    return header + body

def write_output(text: str, path: Optional[str] = None) -> Optional[str]:
    """Write ``text`` to ``path``, or to stdout when path is empty or ``-``."""
    if not path or path == "-":
        sys.stdout.write(text)
        sys.stdout.flush()
        return None
    out_dir = os.path.dirname(os.path.abspath(path))
    os.makedirs(out_dir, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path

# ---------- Logging ----------

_LOGGER_INITIALIZED = False

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _build_logger():
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_dir = os.getenv("LOG_DIR")
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))

    if json_mode:
        fmt = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    # stdout carries rendered templates, so logs go to stderr
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logger.level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = TimedRotatingFileHandler(os.path.join(log_dir, "pipetemplate.log"), when="D", backupCount=7, encoding="utf-8")
        fh.setLevel(logger.level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    _LOGGER_INITIALIZED = True

def get_logger(name: str = None) -> logging.Logger:
    _build_logger()
    return logging.getLogger(name if name else __name__)

# ---------- Secret redaction ----------

def redact_secrets(s: str, *extra: Optional[str]) -> str:
    """Redact credentials from strings for safe logging.

    ``extra`` holds known secret values (e.g. the configured access token)
    that are replaced wherever they appear.
    """
    if not s:
        return s

    env_keys = ["SPINNAKER_ACCESS_TOKEN", "SPINNAKER_API_SESSION"]

    redacted = s
    for v in [os.getenv(k) for k in env_keys] + list(extra):
        if v and len(v) > 3:
            redacted = redacted.replace(v, "***")

    pattern_flags = re.IGNORECASE
    redacted = re.sub(r"(bearer\s+)[A-Za-z0-9._~+/=-]+", r"\1***", redacted, flags=pattern_flags)
    redacted = re.sub(r"(basic\s+)[A-Za-z0-9._~+/=-]+", r"\1***", redacted, flags=pattern_flags)
    redacted = re.sub(r"(SESSION=)([^\s;&]+)", r"\1***", redacted, flags=pattern_flags)
    redacted = re.sub(r"(token=)([^\s&]+)", r"\1***", redacted, flags=pattern_flags)

    return redacted
