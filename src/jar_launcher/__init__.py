from .bridge import RuntimeBridge
from .classpath import build_classpath, classpath_entries
from .config import LaunchSettings, load_launcher_toml
from .errors import (
    AlreadyRunningError,
    ConfigError,
    FilesystemError,
    IntegrityError,
    LauncherError,
    MissingSourceError,
    NetworkError,
)
from .fetcher import ChunkedFetcher
from .orchestrator import LaunchOrchestrator
from .stager import AssetStager
from .types import (
    InlineSource,
    LaunchConfig,
    LaunchPhase,
    LibraryDescriptor,
    NetworkSource,
    ProgressSample,
    RunState,
    SideloadedArchive,
    StagedAsset,
    VersionType,
)
from .version_profile import VersionProfile, decode_version_profile

__all__ = [
    "LaunchOrchestrator",
    "LaunchSettings",
    "load_launcher_toml",
    "RuntimeBridge",
    "ChunkedFetcher",
    "AssetStager",
    "build_classpath",
    "classpath_entries",
    "InlineSource",
    "NetworkSource",
    "StagedAsset",
    "LibraryDescriptor",
    "SideloadedArchive",
    "ProgressSample",
    "LaunchConfig",
    "LaunchPhase",
    "RunState",
    "VersionType",
    "VersionProfile",
    "decode_version_profile",
    "LauncherError",
    "AlreadyRunningError",
    "MissingSourceError",
    "NetworkError",
    "IntegrityError",
    "FilesystemError",
    "ConfigError",
]
