from __future__ import annotations

from typing import Optional


class LauncherError(RuntimeError):
    pass


class AlreadyRunningError(LauncherError):
    def __init__(self, message: str = "cannot start, launch already in progress") -> None:
        super().__init__(message)


class MissingSourceError(LauncherError):
    pass


class NetworkError(LauncherError):
    def __init__(self, message: str, *, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class IntegrityError(NetworkError):
    pass


class FilesystemError(LauncherError):
    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigError(ValueError):
    pass
