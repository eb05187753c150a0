import asyncio
import logging
import os
import sys
from pathlib import Path

from .config import LaunchSettings, load_launcher_toml
from .directories import parent_dir
from .errors import ConfigError, LauncherError
from .fetcher import ChunkedFetcher
from .local_bridge import LocalDirectoryBridge
from .orchestrator import LaunchOrchestrator

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('LauncherEntrypoint')

# --- Configuration ---
# Read once from environment variables; the launcher itself takes explicit settings.
DEFAULT_LAUNCHER_ROOT = '~/.cache/jar-launcher/root'
LAUNCHER_CONFIG = os.getenv('LAUNCHER_CONFIG', 'launcher.toml')
LAUNCHER_JAVA = os.getenv('LAUNCHER_JAVA', 'java')
_timeout_raw = os.getenv('LAUNCHER_FETCH_TIMEOUT_S', '').strip()
FETCH_TIMEOUT_S = float(_timeout_raw) if _timeout_raw else None
FETCH_MAX_TRIES = int(os.getenv('LAUNCHER_FETCH_MAX_TRIES', '3'))


def staging_root() -> Path:
    """Host directory backing the staging filesystem (LAUNCHER_ROOT, blank means default)."""
    raw = (os.getenv('LAUNCHER_ROOT') or '').strip() or DEFAULT_LAUNCHER_ROOT
    return Path(os.path.expanduser(raw))


def prepare_staging_root(bridge: LocalDirectoryBridge, settings: LaunchSettings) -> None:
    """Create the root and the directory the primary jar is written into."""
    bridge.root.mkdir(parents=True, exist_ok=True)
    primary_dir = parent_dir(settings.primary_path)
    if primary_dir:
        bridge.host_path(primary_dir).mkdir(parents=True, exist_ok=True)


def main() -> int:
    root = staging_root()
    logger.info('Starting launcher...')
    logger.info(f'  Config: {LAUNCHER_CONFIG}')
    logger.info(f'  Staging root: {root}')
    logger.info(f'  Java: {LAUNCHER_JAVA}')
    logger.info(f'  Fetch timeout: {FETCH_TIMEOUT_S or "none"}')

    try:
        settings = load_launcher_toml(Path(LAUNCHER_CONFIG))
    except (ConfigError, OSError) as e:
        logger.error(f"Could not load launcher config: {e}")
        return 1

    try:
        bridge = LocalDirectoryBridge(root, java=LAUNCHER_JAVA)
        prepare_staging_root(bridge, settings)
        fetcher = ChunkedFetcher(timeout_s=FETCH_TIMEOUT_S, max_tries=FETCH_MAX_TRIES)
        launcher = LaunchOrchestrator(bridge, settings, fetcher=fetcher)
        exit_code = asyncio.run(launcher.run())
    except LauncherError as e:
        logger.error(f"Launch failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Launcher failed unexpectedly: {e}")
        return 1
    logger.info(f'Launcher finished with exit status {exit_code}.')
    return exit_code


if __name__ == '__main__':
    sys.exit(main())
