# hazardmon/fetch.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from config import HTTP_TIMEOUT

logger = logging.getLogger(__name__)

_session: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = requests.Session()
        _session.headers.update({"User-Agent": "hazardmon/0.1"})
    return _session


def get_json(url: str, params: Optional[Dict[str, Any]] = None, timeout: int = HTTP_TIMEOUT) -> Any:
    """
    GET a JSON document. Network/HTTP errors and bad JSON propagate
    (requests.RequestException / ValueError); callers decide what a
    failure means for source health.
    """
    r = _get_session().get(url, params=params, timeout=timeout)
    r.raise_for_status()
    return r.json()


def load_json(path: Path, default: Any) -> Any:
    try:
        if not Path(path).exists():
            return default
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("[FETCH] could not read %s: %s", path, e)
        return default
