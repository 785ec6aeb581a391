"""Error kinds raised while provisioning the native binding."""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    SOURCE_ACQUISITION = "source-acquisition-failed"
    TOOLCHAIN_NOT_FOUND = "toolchain-not-found"
    TOOLCHAIN_BUILD = "toolchain-build-failed"
    ARTIFACT_MISSING = "artifact-missing"
    RELOCATION = "relocation-failed"
    BINARY_INVALID = "binary-invalid"


class ProvisionError(RuntimeError):
    """Base class for failures along the provisioning pipeline."""

    code: ErrorCode

    def __init__(self, message: str, *, code: ErrorCode) -> None:
        super().__init__(message)
        self.code = code


class SourceAcquisitionError(ProvisionError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.SOURCE_ACQUISITION)


class ToolchainNotFoundError(ProvisionError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.TOOLCHAIN_NOT_FOUND)


class ToolchainBuildError(ProvisionError):
    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message, code=ErrorCode.TOOLCHAIN_BUILD)
        self.returncode = returncode


class ArtifactMissingError(ProvisionError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.ARTIFACT_MISSING)


class RelocationError(ProvisionError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.RELOCATION)


class BinaryInvalidError(ProvisionError):
    """The binary exists but failed live validation; triggers a rebuild."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.BINARY_INVALID)


__all__ = [
    "ArtifactMissingError",
    "BinaryInvalidError",
    "ErrorCode",
    "ProvisionError",
    "RelocationError",
    "SourceAcquisitionError",
    "ToolchainBuildError",
    "ToolchainNotFoundError",
]
