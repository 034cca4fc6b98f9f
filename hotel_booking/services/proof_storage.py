from __future__ import annotations

import logging
import re
import secrets
import time
from pathlib import Path

from hotel_booking.exceptions import ValidationError
from hotel_booking.utils.config import get_settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ProofStorage:
    """Keeps uploaded payment proofs on local disk and hands back an opaque reference."""

    def __init__(self, upload_dir: str | Path | None = None, public_prefix: str = "/uploads") -> None:
        self.upload_dir = Path(upload_dir or get_settings().upload_dir)
        self.public_prefix = public_prefix.rstrip("/")

    def store(self, data: bytes, filename: str | None = None) -> str:
        if not data:
            raise ValidationError("Payment proof file is empty")

        safe_name = _UNSAFE_CHARS.sub("_", Path(filename or "proof").name).strip("._") or "proof"
        stored_name = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{safe_name}"

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        (self.upload_dir / stored_name).write_bytes(data)
        logger.info("Stored payment proof", extra={"stored_name": stored_name, "size": len(data)})
        return f"{self.public_prefix}/{stored_name}"


def get_proof_storage() -> ProofStorage:
    return ProofStorage()
