from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Tuple, Union

import msgspec


class VersionType(str, Enum):
    VANILLA = "vanilla"
    JAR = "jar"
    JAR_ZIP = "jar-zip"

    @property
    def sideloads_mods(self) -> bool:
        """Forge-style variants get a cleaned, repopulated mods directory."""
        return self in (VersionType.JAR, VersionType.JAR_ZIP)

    @classmethod
    def parse(cls, raw: str | None) -> "VersionType":
        s = (raw or "").strip().lower()
        if not s:
            return cls.VANILLA
        for v in cls:
            if v.value == s:
                return v
        raise ValueError(f"unknown version type: {raw!r}")


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class LaunchPhase(str, Enum):
    IDLE = "idle"
    STAGING = "staging"
    CONFIGURING = "configuring"
    LAUNCHING = "launching"
    FAILED = "failed"


@dataclass(frozen=True)
class NetworkSource:
    url: str
    kind: Literal["network"] = field(default="network", init=False)


@dataclass(frozen=True)
class InlineSource:
    data: bytes = field(repr=False)
    kind: Literal["inline"] = field(default="inline", init=False)

    @property
    def size(self) -> int:
        return len(self.data)


AssetSource = Union[NetworkSource, InlineSource]


@dataclass(frozen=True)
class StagedAsset:
    source: AssetSource
    target_path: str

    def __post_init__(self) -> None:
        if not (self.target_path or "").startswith("/"):
            raise ValueError(f"target path must be absolute in the staging filesystem: {self.target_path!r}")


class LibraryDescriptor(msgspec.Struct, frozen=True):
    """A dependency archive: where to download it from and where to stage it."""

    url: str = ""
    path: str = ""
    blake3: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.url.strip()) and bool(self.path.strip())


@dataclass(frozen=True)
class SideloadedArchive:
    name: str
    data: bytes = field(repr=False)

    def has_extension(self, ext: str) -> bool:
        return self.name.endswith(ext)


@dataclass(frozen=True)
class ProgressSample:
    downloaded_bytes: int
    total_bytes: int

    @property
    def fraction(self) -> float:
        # Unknown length: consumers must not compute a ratio.
        if self.total_bytes <= 0:
            return 0.0
        return self.downloaded_bytes / self.total_bytes


@dataclass(frozen=True)
class LaunchConfig:
    primary_jar_path: str
    main_class_name: str
    classpath_entries: Tuple[str, ...]
    jvm_args: Tuple[str, ...]

    @property
    def classpath(self) -> str:
        return ":".join(self.classpath_entries)
