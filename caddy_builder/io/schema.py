"""
Build descriptor schema — what to build, handed to the builder once.

No toolchain logic here; the descriptor is pure data and immutable once
constructed.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Plugin and replacement references
# =============================================================================

class Dependency(BaseModel):
    """A plugin module to include in the build."""
    model_config = ConfigDict(frozen=True)

    module_path: str = Field(min_length=1)
    version: str = ""  # empty: let the toolchain resolve (latest)

    def get_spec(self) -> str:
        """``module@version`` argument for ``go get``."""
        if self.version:
            return f"{self.module_path}@{self.version}"
        return self.module_path


class Replace(BaseModel):
    """A go.mod replace directive: build ``new`` wherever ``old`` is required."""
    model_config = ConfigDict(frozen=True)

    old: str = Field(min_length=1)
    new: str = Field(min_length=1)

    @field_validator("old", "new")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("replace directive fields must not be blank")
        return value

    def op_string(self) -> str:
        """``old=new`` argument for ``go mod edit -replace``."""
        return f"{self.old}={self.new}"


# =============================================================================
# Build descriptor
# =============================================================================

class BuildDescriptor(BaseModel):
    """
    Everything the builder needs: base version, plugins, replacements and
    whether native (cgo) compilation is allowed.
    """
    model_config = ConfigDict(frozen=True)

    caddy_version: str = ""  # empty: toolchain default
    plugins: List[Dependency] = []
    replacements: List[Replace] = []
    cgo_enabled: bool = False

    @model_validator(mode="after")
    def _unique_replacements(self) -> "BuildDescriptor":
        seen = set()
        for repl in self.replacements:
            if repl.old in seen:
                raise ValueError(f"duplicate replacement for module {repl.old}")
            seen.add(repl.old)
        return self

    def replacement_for(self, module_path: str) -> Optional[Replace]:
        for repl in self.replacements:
            if repl.old == module_path:
                return repl
        return None


# =============================================================================
# Artifact metadata
# =============================================================================

class ElfMeta(BaseModel):
    """Minimal ELF header metadata."""
    elf_type: str = ""  # ET_EXEC, ET_DYN, etc.
    arch: str = ""  # EM_X86_64, etc.
    build_id: Optional[str] = None


class ArtifactMeta(BaseModel):
    """Metadata for the produced binary."""
    path: str
    sha256: str
    size_bytes: int
    is_executable: bool
    elf: Optional[ElfMeta] = None  # None when the output is not ELF
