"""Thin client for the Spinnaker (Gate) API.

Only what the converter needs: fetch a pipeline config and publish a
template. Transport errors are never translated; callers see the
``requests`` exception or a ``SpinnakerAPIError`` for non-2xx replies.
"""

from __future__ import annotations

import os
import ssl
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlparse

import requests
from requests.adapters import HTTPAdapter
from tenacity import retry, retry_if_exception_type, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from pipetemplate.errors import SpinnakerAPIError
from pipetemplate.utils import get_logger, redact_secrets

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

# setting name -> environment variable
ENV_VARS = {
    "endpoint": "SPINNAKER_API",
    "access_token": "SPINNAKER_ACCESS_TOKEN",
    "cert_path": "SPINNAKER_CLIENT_CERT",
    "key_path": "SPINNAKER_CLIENT_KEY",
    "session_cookie": "SPINNAKER_API_SESSION",
    "timeout": "SPINNAKER_CLIENT_TIMEOUT",
}


@dataclass
class ClientConfig:
    endpoint: str
    access_token: str = ""
    cert_path: str = ""
    key_path: str = ""
    insecure: bool = False
    session_cookie: str = ""
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def resolve(
        cls,
        flags: Optional[Mapping[str, Any]] = None,
        file_cfg: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ClientConfig":
        """Merge settings: CLI flags, then environment, then config file."""
        flags = flags or {}
        file_cfg = (file_cfg or {}).get("spinnaker") or {}
        environ = os.environ if environ is None else environ

        def pick(key: str, default: Any = "") -> Any:
            if flags.get(key) is not None:
                return flags[key]
            env_name = ENV_VARS.get(key)
            if env_name and environ.get(env_name):
                return environ[env_name]
            if file_cfg.get(key) is not None:
                return file_cfg[key]
            return default

        endpoint = str(pick("endpoint")).rstrip("/")
        if not endpoint:
            raise ValueError("SPINNAKER_API must be set")

        return cls(
            endpoint=endpoint,
            access_token=str(pick("access_token")),
            cert_path=str(pick("cert_path")),
            key_path=str(pick("key_path")),
            insecure=bool(flags.get("insecure") or file_cfg.get("insecure", False)),
            session_cookie=str(pick("session_cookie")),
            timeout=float(pick("timeout", DEFAULT_TIMEOUT)),
        )


def authorization_header(token: str) -> Optional[str]:
    """Bearer for tokens that look like a JWT (``ey...``), Basic otherwise."""
    if not token:
        return None
    if token.startswith("ey"):
        return f"Bearer {token}"
    return f"Basic {token}"


def cookie_domain(endpoint: str) -> str:
    """Cookie domain for the API host.

    http.cookiejar matches dotless hosts (``localhost``) as ``<host>.local``.
    """
    host = urlparse(endpoint).hostname or ""
    if host and "." not in host:
        return host + ".local"
    return host


class TLS12Adapter(HTTPAdapter):
    """HTTPS adapter that refuses anything older than TLS 1.2."""

    def init_poolmanager(self, *args, **kwargs):
        # a version floor, not a prebuilt context: urllib3 must stay free to
        # switch to CERT_NONE when verification is turned off
        kwargs["ssl_minimum_version"] = ssl.TLSVersion.TLSv1_2
        return super().init_poolmanager(*args, **kwargs)


def build_session(config: ClientConfig) -> requests.Session:
    s = requests.Session()
    if config.cert_path and config.key_path:
        logger.debug("configuring TLS with pem cert/key pair cert=%s", config.cert_path)
        s.mount("https://", TLS12Adapter())
        s.cert = (config.cert_path, config.key_path)
    if config.insecure:
        s.verify = False
    if config.session_cookie:
        s.cookies.set("SESSION", config.session_cookie, domain=cookie_domain(config.endpoint))
    return s


class SpinnakerClient:
    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.endpoint = config.endpoint.rstrip("/")
        self.access_token = config.access_token
        self.session = session if session is not None else build_session(config)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(extra or {})
        auth = authorization_header(self.access_token)
        if auth:
            headers["Authorization"] = auth
        return headers

    def _send_kwargs(self, extra_headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"headers": self._headers(extra_headers), "timeout": self.config.timeout}
        # per request, so REQUESTS_CA_BUNDLE / CURL_CA_BUNDLE cannot re-enable it
        if self.config.insecure:
            kwargs["verify"] = False
        return kwargs

    def _check(self, method: str, url: str, resp: requests.Response) -> Any:
        if not (200 <= resp.status_code < 300):
            body = redact_secrets(resp.text or "", self.access_token)
            logger.error("spinnaker %s %s status=%d", method, url, resp.status_code)
            raise SpinnakerAPIError(method, url, resp.status_code, body)
        if not resp.content:
            return {}
        return resp.json()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=(
            retry_if_exception_type(requests.ConnectionError)
            & retry_if_not_exception_type(requests.exceptions.SSLError)
        ),
        reraise=True,
    )
    def _get(self, url: str) -> Any:
        logger.debug("GET %s", url)
        resp = self.session.get(url, **self._send_kwargs())
        return self._check("GET", url, resp)

    def _post_json(self, url: str, body: Any) -> Any:
        logger.debug("POST %s", url)
        resp = self.session.post(url, json=body, **self._send_kwargs({"Content-Type": "application/json"}))
        return self._check("POST", url, resp)

    def get_pipeline_config(self, application: str, pipeline_name: str) -> Dict[str, Any]:
        url = f"{self.endpoint}/applications/{quote(application, safe='')}/pipelineConfigs/{quote(pipeline_name, safe='')}"
        cfg = self._get(url)
        logger.info("fetched pipeline config application=%s name=%s stages=%d",
                    application, pipeline_name, len(cfg.get("stages") or []))
        return cfg

    def publish_template(self, template: Mapping[str, Any]) -> Dict[str, Any]:
        url = f"{self.endpoint}/pipelineTemplates"
        ref = self._post_json(url, dict(template))
        logger.info("published template id=%s ref=%s", template.get("id"), ref.get("ref") if isinstance(ref, dict) else ref)
        return ref
