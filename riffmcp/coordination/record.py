"""The persisted description of the running primary."""

from __future__ import annotations

import os
import time
import uuid

from pydantic import BaseModel, ConfigDict, Field

RUNNING = "running"


def new_instance_token() -> str:
    return str(uuid.uuid4())


class PrimaryRecord(BaseModel):
    """Who is primary: where it listens and which process owns the slot."""
    model_config = ConfigDict(extra="ignore")

    port: int = Field(ge=0, le=65535)
    host: str
    status: str
    pid: int
    instance: str
    timestamp: float

    @classmethod
    def for_current_process(cls, host: str, port: int) -> PrimaryRecord:
        return cls(
            port=port,
            host=host,
            status=RUNNING,
            pid=os.getpid(),
            instance=new_instance_token(),
            timestamp=time.time(),
        )

    @property
    def is_running(self) -> bool:
        return self.status == RUNNING

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"
