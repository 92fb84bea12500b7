"""
Artifact inspection — hash, size, and ELF header metadata of a built binary.

Non-ELF outputs (PE, Mach-O) are fine; they just carry no ELF metadata.
"""
import hashlib
import logging
import os
from pathlib import Path
from typing import Optional

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from caddy_builder.errors import BuildError
from caddy_builder.io.schema import ArtifactMeta, ElfMeta

logger = logging.getLogger(__name__)


def hash_file(path: Path) -> str:
    """SHA-256 of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def read_elf_meta(path: Path) -> Optional[ElfMeta]:
    """ELF type, machine and build-id, or None if the file is not ELF."""
    try:
        with open(path, "rb") as f:
            elf = ELFFile(f)
            build_id = None
            section = elf.get_section_by_name(".note.gnu.build-id")
            if section is not None:
                for note in section.iter_notes():
                    if note["n_type"] == "NT_GNU_BUILD_ID":
                        build_id = note["n_desc"]
            return ElfMeta(
                elf_type=elf.header["e_type"],
                arch=elf.header["e_machine"],
                build_id=build_id,
            )
    except ELFError:
        return None


def inspect_artifact(output: str) -> ArtifactMeta:
    """Describe the binary at ``output``; BuildError if it is missing."""
    path = Path(output)
    if not path.is_file():
        raise BuildError(
            f"builder reported success but no artifact at {output}",
            context={"output": output},
        )

    meta = ArtifactMeta(
        path=str(path),
        sha256=hash_file(path),
        size_bytes=path.stat().st_size,
        is_executable=os.access(path, os.X_OK),
        elf=read_elf_meta(path),
    )
    logger.info(
        f"Built {meta.path} ({meta.size_bytes} bytes, sha256={meta.sha256[:12]})"
    )
    if meta.elf is not None:
        logger.debug(f"ELF {meta.elf.elf_type} {meta.elf.arch} build_id={meta.elf.build_id}")
    return meta
