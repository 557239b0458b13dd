# src/manifest/models.py - v1
"""Cache manifest models: FingerprintRecord, CacheConfig."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FingerprintRecord(BaseModel):
    """Digest over an ordered list of output paths."""

    cache_id: str
    precache: list[str] = Field(default_factory=list)
    digest: str


class CacheConfig(BaseModel):
    """The cache manifest document consumed by the offline-cache layer."""

    model_config = ConfigDict(populate_by_name=True)

    cache_id: str = Field(alias="cacheId")
    disabled: bool = False
    precache: list[str] = Field(default_factory=list)
    precache_fingerprint: str = Field(alias="precacheFingerprint")

    @classmethod
    def from_record(cls, record: FingerprintRecord, disabled: bool = False) -> CacheConfig:
        return cls(
            cache_id=record.cache_id,
            disabled=disabled,
            precache=list(record.precache),
            precache_fingerprint=record.digest,
        )
