from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from hotel_booking.utils.config import get_settings


def load_room_inventory(path: str | Path | None = None) -> List[Dict[str, Any]]:
    room_path = Path(path or get_settings().room_data_path)
    if not room_path.exists():
        return []

    with room_path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
