"""Provisioning of the libsass native binding: test it, and rebuild it when needed."""
from __future__ import annotations

from .build import BuildPipeline, PipelineResult, PipelineState
from .cli import main
from .environment import BuildConfig
from .errors import (
    ArtifactMissingError,
    BinaryInvalidError,
    ProvisionError,
    RelocationError,
    SourceAcquisitionError,
    ToolchainBuildError,
    ToolchainNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "ArtifactMissingError",
    "BinaryInvalidError",
    "BuildConfig",
    "BuildPipeline",
    "PipelineResult",
    "PipelineState",
    "ProvisionError",
    "RelocationError",
    "SourceAcquisitionError",
    "ToolchainBuildError",
    "ToolchainNotFoundError",
    "main",
]
