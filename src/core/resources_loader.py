"""Cargador de recursos/datasets.

Este módulo vive en `core/` porque:
- centraliza el *qué* datos necesitamos (lista de palabras, directorio de estado)
  sin acoplarse a la CLI
- evita duplicar lógica de paths en adaptadores.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

from core.config import AppSettings, get_user_config_dir

logger = logging.getLogger(__name__)

WORDS_FILENAME = "words.json"


def _project_root() -> Path:
    # core/resources_loader.py -> core -> src -> <project_root>
    return Path(__file__).resolve().parents[2]


def data_dir(settings: AppSettings | None = None) -> Path:
    """Directorio de datos en runtime.

    Reglas:
    - Si `settings.data_dir` (DOMAIN_RADAR_DATA_DIR) está definido, se usa tal cual.
    - Si estamos en modo "frozen" (PyInstaller), usar un path escribible del usuario.
    - En desarrollo, usar <project_root>/data.
    """

    if settings is not None and settings.data_dir is not None:
        return settings.data_dir

    override = (os.environ.get("DOMAIN_RADAR_DATA_DIR") or "").strip()
    if override:
        return Path(override)

    if getattr(sys, "frozen", False):
        return get_user_config_dir() / "data"

    return _project_root() / "data"


def load_word_list(path: Path | None = None) -> list[str]:
    """Carga la lista de palabras cortas usada por varias estrategias.

    Devuelve [] (con warning) si el fichero no existe o no es una lista JSON.
    """

    path = path or data_dir() / WORDS_FILENAME
    if not path.exists():
        logger.warning("Word list not found at %s; word strategies will be empty", path)
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Cannot read word list %s: %s", path, exc)
        return []
    if not isinstance(data, list):
        logger.warning("Word list %s is not a JSON array", path)
        return []

    words = [w.strip().lower() for w in data if isinstance(w, str)]
    return list(dict.fromkeys(w for w in words if w.isalpha()))
