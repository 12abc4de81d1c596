# hajimi: Lightweight YAML settings loader. Project-local settings win over the per-user file.

from __future__ import annotations

import pathlib
from typing import Any, Dict, List, Optional

import yaml


def settings_candidates(root: pathlib.Path, home: Optional[pathlib.Path] = None) -> List[pathlib.Path]:
    """Return the settings paths to check, highest precedence first."""
    home = home if home is not None else pathlib.Path.home()
    paths: List[pathlib.Path] = []
    for base in (pathlib.Path(root) / ".hajimi", home / ".hajimi"):
        paths.append(base / "settings.yaml")
        paths.append(base / "settings.yml")
    return paths


def load_settings(root: pathlib.Path, home: Optional[pathlib.Path] = None) -> Dict[str, Any]:
    """
    Load Hajimi settings from <root>/.hajimi/settings.yaml (or .yml), falling back
    to ~/.hajimi/settings.yaml.

    Returns an empty dict {} when no settings file is found, or when the first
    file found is unreadable or does not contain a mapping. The function never raises.
    """
    try:
        for p in settings_candidates(root, home):
            try:
                if p.exists() and p.is_file():
                    text = p.read_text(encoding="utf-8")
                    data = yaml.safe_load(text)
                    if isinstance(data, dict):
                        return data
                    # hajimi: Non-mapping YAML is treated as empty settings.
                    return {}
            except Exception:
                # hajimi: Swallow parse/IO errors and continue to next candidate.
                continue
        return {}
    except Exception:
        return {}


def section(settings: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    """Return settings[name] when it is a mapping, else {}."""
    value = (settings or {}).get(name) if isinstance(settings, dict) else None
    return value if isinstance(value, dict) else {}
