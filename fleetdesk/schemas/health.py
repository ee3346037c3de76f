"""Health check payload."""

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness plus credential store reachability; no auth required."""

    status: Literal["ok"] = "ok"
    service: str = "fleetdesk"
    version: str
    environment: Literal["dev", "prod"]
    database: Literal["connected", "disconnected"]
