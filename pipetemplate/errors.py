"""Error types raised by the converter and the Spinnaker client."""

from __future__ import annotations

from typing import Optional


class MalformedStage(ValueError):
    """A pipeline stage is missing a required field or has the wrong shape.

    Raised before any template output exists; the conversion is aborted as
    a whole.
    """

    def __init__(self, index: int, field: Optional[str], reason: str):
        self.index = index
        self.field = field
        self.reason = reason
        where = f"stage[{index}]" + (f".{field}" if field else "")
        super().__init__(f"malformed stage {where}: {reason}")


class SpinnakerAPIError(RuntimeError):
    """Non-2xx response from the Spinnaker API."""

    def __init__(self, method: str, url: str, status_code: int, body: str = ""):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"{method} {url} returned {status_code}: {body[:200]}")
