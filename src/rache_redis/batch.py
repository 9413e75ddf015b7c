"""Write batches for multi-key stores.

Redis' MSET has no per-key expiry, so a batch picks one of two paths:

- ttl <= 0: a single MSET carrying every key.
- ttl > 0: one ``SET key value EX ttl`` per key, queued in a single
  non-transactional pipeline and flushed in one round trip.

Either way the batch is submitted and awaited as one unit. A pipeline
raises the first failing command's error after the flush, which fails the
whole batch even though the other commands may have been applied.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rache_redis.protocols import KVClient
from rache_redis.values import CacheValue, encode


@dataclass(frozen=True)
class WriteIntent:
    """One encoded per-key write."""

    key: str
    data: bytes


@dataclass
class WriteBatch:
    """Accumulates encoded writes sharing one ttl, then submits them together.

    Example:
        batch = WriteBatch.from_values({"a": Payload(b"1"), "b": NEGATIVE}, ttl=30)
        await batch.submit(client)
    """

    ttl: int
    intents: list[WriteIntent] = field(default_factory=list)

    @classmethod
    def from_values(cls, values: Mapping[str, CacheValue], ttl: int) -> "WriteBatch":
        """Build a batch from a key to value mapping."""
        batch = cls(ttl=ttl)
        for key, value in values.items():
            batch.add(key, value)
        return batch

    def add(self, key: str, value: CacheValue) -> None:
        """Encode and queue a write."""
        self.intents.append(WriteIntent(key=key, data=encode(value)))

    def __len__(self) -> int:
        return len(self.intents)

    @property
    def expiring(self) -> bool:
        """Whether the writes carry an expiry and need the pipelined path."""
        return self.ttl > 0

    def as_mapping(self) -> dict[str, bytes]:
        """Encoded writes as a mapping. Later writes to a key win."""
        return {intent.key: intent.data for intent in self.intents}

    async def submit(self, client: KVClient) -> list[Any]:
        """Execute the batch.

        Args:
            client: Connected store client

        Returns:
            Store replies: one for the MSET path, one per key otherwise.
            Empty if nothing was queued.
        """
        if not self.intents:
            return []

        if not self.expiring:
            return [await client.mset(self.as_mapping())]

        async with client.pipeline(transaction=False) as pipe:
            for key, data in self.as_mapping().items():
                pipe.set(key, data, ex=self.ttl)
            return await pipe.execute()
