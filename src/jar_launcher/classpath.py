from __future__ import annotations

from typing import Iterable, List

CLASSPATH_SEPARATOR = ":"

DEFAULT_RUNTIME_SUPPORT_PATHS: tuple[str, ...] = (
    "/app/lwjgl-2.9.3.jar",
    "/app/lwjgl_util-2.9.3.jar",
)


def classpath_entries(
    primary_path: str,
    dependency_paths: Iterable[str],
    fixed_suffix_paths: Iterable[str] = DEFAULT_RUNTIME_SUPPORT_PATHS,
) -> List[str]:
    """
    Ordered classpath entries.

    Each dependency is pushed onto the front as it is visited, so the last declared
    dependency resolves first. Runtime support archives always come last. Duplicates
    are kept as given.
    """
    entries: List[str] = [primary_path]
    for dep in dependency_paths:
        entries.insert(0, dep)
    entries.extend(fixed_suffix_paths)
    return entries


def build_classpath(
    primary_path: str,
    dependency_paths: Iterable[str],
    fixed_suffix_paths: Iterable[str] = DEFAULT_RUNTIME_SUPPORT_PATHS,
) -> str:
    return CLASSPATH_SEPARATOR.join(classpath_entries(primary_path, dependency_paths, fixed_suffix_paths))
