"""Core data structures for tagtrail."""

from tagtrail.models.config import TagtrailConfig
from tagtrail.models.records import ChangeRecord
from tagtrail.models.snapshots import ContainerSpec, WorkloadSnapshot

__all__ = [
    "ChangeRecord",
    "ContainerSpec",
    "TagtrailConfig",
    "WorkloadSnapshot",
]
