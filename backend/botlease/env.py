"""Environment loading helpers.

Nothing here runs at import time; entrypoints call `load_dotenv_if_present`
explicitly before reading settings.
"""

from __future__ import annotations

from dotenv import find_dotenv, load_dotenv


def load_dotenv_if_present(filename: str = ".env") -> bool:
    """Load variables from `filename` (searched upwards from the cwd) if it exists."""

    dotenv_path = find_dotenv(filename=filename, usecwd=True)
    if not dotenv_path:
        return False
    return load_dotenv(dotenv_path=dotenv_path, override=False)
