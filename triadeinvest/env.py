from __future__ import annotations

import os
from pathlib import Path


def _parse_value(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    # Unquoted values may carry a trailing comment: OMIE_TIMEOUT=15  # segundos
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def parse_dotenv(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            values[key] = _parse_value(value)
    return values


def load_dotenv_if_exists(base_dir: Path) -> None:
    """Fill os.environ from base_dir/.env without overriding real variables."""
    env_path = base_dir / ".env"
    if not env_path.exists():
        return

    for key, value in parse_dotenv(env_path.read_text(encoding="utf-8")).items():
        os.environ.setdefault(key, value)
