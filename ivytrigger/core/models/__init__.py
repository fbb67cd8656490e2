"""
Domain models — Pydantic types for the trigger evaluator.

All models are re-exported here for convenient access:

    from ivytrigger.core.models import ResolutionReport, DependencyValue, TriggerConfig
"""

from ivytrigger.core.models.dependency import (
    ArtifactDescriptor,
    DependencyValue,
    EvaluationResult,
    Snapshot,
)
from ivytrigger.core.models.report import (
    Artifact,
    ArtifactDownloadReport,
    ConfigurationReport,
    DependencyNode,
    DownloadStatus,
    ModuleRevisionId,
    ResolutionReport,
)
from ivytrigger.core.models.trigger import EvaluationRequest, IvyEngineConfig, TriggerConfig

__all__ = [
    # dependency.py
    "ArtifactDescriptor",
    "DependencyValue",
    "EvaluationResult",
    "Snapshot",
    # report.py
    "Artifact",
    "ArtifactDownloadReport",
    "ConfigurationReport",
    "DependencyNode",
    "DownloadStatus",
    "ModuleRevisionId",
    "ResolutionReport",
    # trigger.py
    "EvaluationRequest",
    "IvyEngineConfig",
    "TriggerConfig",
]
