from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import msgspec

from .errors import ConfigError
from .types import LibraryDescriptor, VersionType


class VersionProfile(msgspec.Struct, frozen=True, kw_only=True):
    """
    A selectable game version as published by the version list.

    JSON shape:
      {"class": "...", "type": "jar", "jvmArgs": [...], "libraries": [{"url": "...", "path": "..."}]}
    """

    main_class: Optional[str] = msgspec.field(default=None, name="class")
    type: str = ""
    jvm_args: tuple[str, ...] = msgspec.field(default=(), name="jvmArgs")
    libraries: tuple[LibraryDescriptor, ...] = ()

    @property
    def version_type(self) -> VersionType:
        return VersionType.parse(self.type)


def decode_version_profile(raw: Union[bytes, str]) -> VersionProfile:
    try:
        profile = msgspec.json.decode(raw, type=VersionProfile)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise ConfigError(f"invalid version profile: {e}") from e
    try:
        VersionType.parse(profile.type)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    return profile


def load_version_profile(path: Path) -> VersionProfile:
    return decode_version_profile(path.read_bytes())
