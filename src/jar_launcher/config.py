from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

import tomllib

from .classpath import DEFAULT_RUNTIME_SUPPORT_PATHS
from .errors import ConfigError
from .types import AssetSource, InlineSource, LibraryDescriptor, NetworkSource, SideloadedArchive, VersionType
from .version_profile import VersionProfile, load_version_profile

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_PATH = "/files/client.jar"
DEFAULT_MINECRAFT_DIR = "/files/.minecraft"
DEFAULT_MODS_DIR = "/files/.minecraft/mods"
DEFAULT_SIDELOAD_EXTENSION = ".jar"
DEFAULT_MAIN_CLASS = "net.minecraft.client.Minecraft"


@dataclass(frozen=True)
class LaunchSettings:
    """Everything one launch needs, resolved up front. Defaults are the staging conventions."""

    primary_source: Optional[AssetSource] = None
    version_type: VersionType = VersionType.VANILLA
    main_class: Optional[str] = None
    jvm_args: Tuple[str, ...] = ()
    libraries: Tuple[LibraryDescriptor, ...] = ()
    sideloaded_archives: Tuple[SideloadedArchive, ...] = ()
    primary_path: str = DEFAULT_PRIMARY_PATH
    minecraft_dir: str = DEFAULT_MINECRAFT_DIR
    mods_dir: str = DEFAULT_MODS_DIR
    sideload_extension: str = DEFAULT_SIDELOAD_EXTENSION
    runtime_support_paths: Tuple[str, ...] = DEFAULT_RUNTIME_SUPPORT_PATHS
    default_main_class: str = DEFAULT_MAIN_CLASS

    def resolved_main_class(self) -> str:
        mc = (self.main_class or "").strip()
        return mc or self.default_main_class

    @classmethod
    def from_profile(cls, profile: VersionProfile, **overrides: Any) -> "LaunchSettings":
        base: dict[str, Any] = {
            "version_type": profile.version_type,
            "main_class": profile.main_class,
            "jvm_args": tuple(profile.jvm_args),
            "libraries": tuple(profile.libraries),
        }
        base.update(overrides)
        return cls(**base)


def _str_list(v: Any, *, field: str) -> List[str]:
    if v is None:
        return []
    if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
        raise ConfigError(f"{field} must be a list of strings")
    return list(v)


def _parse_primary(raw: Any, base_dir: Path) -> Optional[AssetSource]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ConfigError("[primary] must be a table")
    url = str(raw.get("url") or "").strip()
    file = str(raw.get("file") or "").strip()
    if url and file:
        raise ConfigError("[primary] takes either url or file, not both")
    if url:
        return NetworkSource(url=url)
    if file:
        p = (base_dir / file).expanduser()
        try:
            return InlineSource(data=p.read_bytes())
        except OSError as e:
            raise ConfigError(f"cannot read primary jar {p}: {e}") from e
    return None


def _parse_libraries(raw: Any) -> List[LibraryDescriptor]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("[[libraries]] must be an array of tables")
    out: List[LibraryDescriptor] = []
    for ent in raw:
        if not isinstance(ent, Mapping):
            continue
        out.append(
            LibraryDescriptor(
                url=str(ent.get("url") or "").strip(),
                path=str(ent.get("path") or "").strip(),
                blake3=str(ent.get("blake3") or "").strip().lower(),
            )
        )
    return out


def read_sideloaded_archives(mods_dir: Path) -> List[SideloadedArchive]:
    """Every regular file in `mods_dir`, by name. Extension filtering happens at staging time."""
    if not mods_dir.is_dir():
        raise ConfigError(f"mods dir does not exist: {mods_dir}")
    out: List[SideloadedArchive] = []
    for p in sorted(mods_dir.iterdir(), key=lambda x: x.name):
        if p.is_file():
            out.append(SideloadedArchive(name=p.name, data=p.read_bytes()))
    return out


def load_launcher_toml(path: Path) -> LaunchSettings:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"{path.name}: {e}") from e
    if data.get("schema_version") != 1:
        raise ConfigError("launcher.toml schema_version must be 1")

    base_dir = path.parent
    primary = _parse_primary(data.get("primary"), base_dir)

    version = data.get("version") or {}
    if not isinstance(version, Mapping):
        raise ConfigError("[version] must be a table")

    profile: Optional[VersionProfile] = None
    profile_file = str(version.get("profile") or "").strip()
    if profile_file:
        try:
            profile = load_version_profile(base_dir / profile_file)
        except OSError as e:
            raise ConfigError(f"cannot read version profile {profile_file}: {e}") from e

    raw_type = str(version.get("type") or "").strip()
    if raw_type:
        try:
            version_type = VersionType.parse(raw_type)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    elif profile is not None:
        version_type = profile.version_type
    else:
        version_type = VersionType.VANILLA

    main_class = str(version.get("main_class") or "").strip() or (profile.main_class if profile else None)

    if "jvm_args" in version:
        jvm_args = _str_list(version.get("jvm_args"), field="version.jvm_args")
    else:
        jvm_args = list(profile.jvm_args) if profile else []

    libraries = list(profile.libraries) if profile else []
    libraries.extend(_parse_libraries(data.get("libraries")))

    archives: List[SideloadedArchive] = []
    mods = data.get("mods")
    if isinstance(mods, Mapping) and str(mods.get("dir") or "").strip():
        archives = read_sideloaded_archives((base_dir / str(mods["dir"]).strip()).expanduser())

    kwargs: dict[str, Any] = {}
    runtime = data.get("runtime")
    if isinstance(runtime, Mapping) and "support_paths" in runtime:
        kwargs["runtime_support_paths"] = tuple(_str_list(runtime.get("support_paths"), field="runtime.support_paths"))

    settings = LaunchSettings(
        primary_source=primary,
        version_type=version_type,
        main_class=main_class,
        jvm_args=tuple(jvm_args),
        libraries=tuple(libraries),
        sideloaded_archives=tuple(archives),
        **kwargs,
    )
    logger.debug(
        f"Loaded {path}: type={settings.version_type.value} libraries={len(settings.libraries)} "
        f"mods={len(settings.sideloaded_archives)}"
    )
    return settings
