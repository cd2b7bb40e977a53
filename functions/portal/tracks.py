"""
Academic track catalogue. Tracks are static: a JSON list shipped with the
package, overridable with a local file or a URL.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import requests
from dacite import DaciteError, from_dict

from shared.records import AcademicTrack

logger = logging.getLogger(__name__)

DEFAULT_TRACKS_PATH = Path(__file__).parent / "data" / "academic_tracks.json"
REQUEST_TIMEOUT = 10


def _parse(raw: list) -> list[AcademicTrack]:
    return [from_dict(data_class=AcademicTrack, data=item) for item in raw]


def load_academic_tracks(
    path: Optional[str] = None, url: Optional[str] = None
) -> list[AcademicTrack]:
    """
    Loads the catalogue from `url` when given, else from `path` (defaulting to
    the packaged file). Any failure is logged and yields an empty list.
    """
    try:
        if url:
            response = requests.get(url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            raw = response.json()
        else:
            with open(path or DEFAULT_TRACKS_PATH, encoding="utf-8") as f:
                raw = json.load(f)
        tracks = _parse(raw)
    except (requests.RequestException, OSError, ValueError, TypeError, DaciteError):
        logger.exception("Failed to load academic tracks")
        return []
    logger.info("Loaded %d academic tracks", len(tracks))
    return tracks
