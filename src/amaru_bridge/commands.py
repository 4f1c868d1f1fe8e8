"""Commands the presentation layer can invoke to reset local state."""
from pathlib import Path
import logging
import shutil

from .config import chain_dir, ledger_dir
from .errors import CommandError


def _remove_dir(path: Path):
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise CommandError(str(e)) from e
    logging.info(f"Removed {path}")


def clear_app_data_dir(app_data_dir: Path):
    """Removes the whole application-data directory, settings included."""
    _remove_dir(Path(app_data_dir))


def clear_dbs(app_data_dir: Path):
    """Removes the ledger and chain directories, forcing a new bootstrap on next start."""
    _remove_dir(ledger_dir(app_data_dir))
    _remove_dir(chain_dir(app_data_dir))
