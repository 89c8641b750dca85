"""
Storage for one-time codes, keyed by normalized email.

The in-memory store is process-local: codes vanish on restart and are not shared
between workers. Set OTP_BACKEND=redis to share them across instances.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Optional, Protocol

import redis

from app import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpRecord:
    code: str
    expires_at: datetime
    verified: bool = False

    def to_json(self) -> str:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "OtpRecord":
        data = json.loads(raw)
        return cls(
            code=data["code"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
            verified=bool(data.get("verified", False)),
        )

    def mark_verified(self) -> "OtpRecord":
        return replace(self, verified=True)


class OtpStore(Protocol):
    def set(self, key: str, record: OtpRecord) -> None: ...

    def get(self, key: str) -> Optional[OtpRecord]: ...

    def delete(self, key: str) -> None: ...

    def compare_and_set(self, key: str, expected: OtpRecord, new: OtpRecord) -> bool: ...


class MemoryOtpStore:
    def __init__(self, ttl_seconds: int = config.OTP_STORE_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[str, tuple[OtpRecord, float]] = {}

    def set(self, key: str, record: OtpRecord) -> None:
        now = self._clock()
        self._purge(now)
        self._data[key] = (record, now + self.ttl_seconds)

    def _purge(self, now: float) -> None:
        # codes that were sent but never verified
        for key in [k for k, (_, deadline) in self._data.items() if deadline < now]:
            del self._data[key]

    def get(self, key: str) -> Optional[OtpRecord]:
        entry = self._data.get(key)
        if not entry:
            return None
        record, deadline = entry
        if deadline < self._clock():
            self._data.pop(key, None)
            return None
        return record

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def compare_and_set(self, key: str, expected: OtpRecord, new: OtpRecord) -> bool:
        if self.get(key) != expected:
            return False
        self.set(key, new)
        return True

    def __len__(self) -> int:
        return len(self._data)


class RedisOtpStore:
    def __init__(self, client: redis.Redis, ttl_seconds: int = config.OTP_STORE_TTL_SECONDS, prefix: str = "otp"):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def set(self, key: str, record: OtpRecord) -> None:
        self.client.set(self._key(key), record.to_json(), ex=self.ttl_seconds)

    def get(self, key: str) -> Optional[OtpRecord]:
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return OtpRecord.from_json(raw)

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))

    def compare_and_set(self, key: str, expected: OtpRecord, new: OtpRecord) -> bool:
        rkey = self._key(key)
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(rkey)
                raw = pipe.get(rkey)
                if raw is None or OtpRecord.from_json(raw) != expected:
                    pipe.unwatch()
                    return False
                ttl = pipe.ttl(rkey)
                pipe.multi()
                pipe.set(rkey, new.to_json(), ex=ttl if ttl and ttl > 0 else self.ttl_seconds)
                pipe.execute()
                return True
            except redis.WatchError:
                logger.info("OTP record for %s changed during verify", key)
                return False


_store: Optional[OtpStore] = None
_store_lock = threading.Lock()


def build_otp_store(backend: str = config.OTP_BACKEND) -> OtpStore:
    if backend == "redis":
        return RedisOtpStore(redis.from_url(config.REDIS_URL))
    if backend == "memory":
        return MemoryOtpStore()
    raise RuntimeError(f"Unknown OTP_BACKEND: {backend}")


def get_otp_store() -> OtpStore:
    """FastAPI dependency returning the process-wide OTP store."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = build_otp_store()
                logger.info("Using %s OTP store", type(_store).__name__)
    return _store
