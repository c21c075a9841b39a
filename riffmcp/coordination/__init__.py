"""Cross-process coordination: who is primary and how to reach it."""

from riffmcp.coordination.election import Election, ElectionOutcome, Role
from riffmcp.coordination.launcher import PrimaryLauncher, default_launch_command
from riffmcp.coordination.liveness import LivenessOracle, find_running_primary
from riffmcp.coordination.record import PrimaryRecord
from riffmcp.coordination.store import ConfigStore

__all__ = [
    "ConfigStore",
    "Election",
    "ElectionOutcome",
    "LivenessOracle",
    "PrimaryLauncher",
    "PrimaryRecord",
    "Role",
    "default_launch_command",
    "find_running_primary",
]
