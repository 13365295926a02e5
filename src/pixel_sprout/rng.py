from __future__ import annotations

import hashlib
import json
import logging
import random
import secrets
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

Seed = Union[int, str, bytes, None]


def _stable_payload(value: Any) -> bytes:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class RNGManager:
    """Hands out independent ``random.Random`` streams derived from one seed.

    Each stream is keyed by a domain name plus identifiers, so the layout of
    level 3 does not depend on how many combat rolls happened on level 2::

        rngm = RNGManager(42)
        layout = rngm.context_rng("dungeon_layout", 3)
        rolls = rngm.context_rng("session")

    Without a master seed a random one is drawn and logged so a run can be
    replayed with ``--seed``.
    """

    master_seed: Seed = None

    def __post_init__(self) -> None:
        if self.master_seed is None:
            raw = secrets.token_bytes(8)
            logger.info("No seed given; using random seed 0x%s", raw.hex())
        else:
            raw = self._seed_bytes(self.master_seed)
            logger.debug("Using master seed %r", self.master_seed)
        object.__setattr__(self, "_raw", raw)

    @staticmethod
    def _seed_bytes(seed: Union[int, str, bytes]) -> bytes:
        if isinstance(seed, bytes):
            return seed
        if isinstance(seed, bool):
            raise TypeError("Seed may not be a bool")
        if isinstance(seed, int):
            if seed < 0:
                raise ValueError("Seed must be non-negative")
            return seed.to_bytes((seed.bit_length() + 7) // 8 or 1, "big")
        if isinstance(seed, str):
            text = seed.strip()
            if text.lower().startswith("0x"):
                try:
                    return RNGManager._seed_bytes(int(text, 16))
                except ValueError:
                    pass
            return text.encode("utf-8")
        raise TypeError(f"Unsupported seed type: {type(seed)!r}")

    @property
    def seed_hex(self) -> str:
        return self._raw.hex()  # type: ignore[attr-defined]

    def derive_seed(self, domain: str, *identifiers: Any) -> int:
        """Derive a 64-bit seed for ``domain`` and ``identifiers``."""
        payload = {"domain": domain, "ids": list(identifiers), "master": self.seed_hex}
        digest = hashlib.blake2b(_stable_payload(payload), digest_size=8).digest()
        return int.from_bytes(digest, "big")

    def context_rng(self, domain: str, *identifiers: Any) -> random.Random:
        seed = self.derive_seed(domain, *identifiers)
        logger.debug("RNG stream domain=%s ids=%s seed=%d", domain, identifiers, seed)
        return random.Random(seed)


def coerce_seed(value: Optional[str]) -> Seed:
    """Interpret a seed given on the command line or in the environment."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return value
