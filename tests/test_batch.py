"""Tests for write batches."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from rache_redis.batch import WriteBatch, WriteIntent
from rache_redis.exceptions import UnencodableValueError
from rache_redis.values import NEGATIVE, UNKNOWN, Payload


class TestWriteBatch:
    """Tests for building a WriteBatch."""

    def test_from_values_encodes(self) -> None:
        """Values are encoded as they are added."""
        batch = WriteBatch.from_values({"a": Payload(b"1"), "b": NEGATIVE}, ttl=30)

        assert batch.intents == [
            WriteIntent(key="a", data=b"1"),
            WriteIntent(key="b", data=b""),
        ]
        assert len(batch) == 2

    def test_unknown_rejected_before_submit(self) -> None:
        """A batch containing UNKNOWN fails while building."""
        with pytest.raises(UnencodableValueError):
            WriteBatch.from_values({"a": Payload(b"1"), "b": UNKNOWN}, ttl=0)

    @pytest.mark.parametrize("ttl,expiring", [(-5, False), (0, False), (1, True), (3600, True)])
    def test_expiring(self, ttl: int, expiring: bool) -> None:
        """Only a positive ttl needs expiry."""
        assert WriteBatch(ttl=ttl).expiring is expiring

    def test_as_mapping_last_write_wins(self) -> None:
        """Repeated keys collapse to the last write."""
        batch = WriteBatch(ttl=0)
        batch.add("a", Payload(b"old"))
        batch.add("a", Payload(b"new"))

        assert batch.as_mapping() == {"a": b"new"}


class TestSubmit:
    """Tests for WriteBatch.submit."""

    @pytest.mark.asyncio
    async def test_empty_batch_sends_nothing(self, fake_client) -> None:
        """An empty batch makes no calls."""
        assert await WriteBatch(ttl=10).submit(fake_client) == []
        fake_client.mset.assert_not_called()
        fake_client.pipeline.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_ttl_uses_single_mset(self, fake_client) -> None:
        """Without expiry one MSET carries every key."""
        batch = WriteBatch.from_values({"a": Payload(b"1"), "b": NEGATIVE}, ttl=0)

        await batch.submit(fake_client)

        fake_client.mset.assert_awaited_once_with({"a": b"1", "b": b""})
        fake_client.pipeline.assert_not_called()

    @pytest.mark.asyncio
    async def test_ttl_uses_one_pipeline(self, fake_client) -> None:
        """With expiry each key is a SET EX in one non-transactional pipeline."""
        pipe = fake_client.pipeline.return_value
        pipe.execute.return_value = [True, True]
        batch = WriteBatch.from_values({"a": Payload(b"1"), "b": NEGATIVE}, ttl=30)

        replies = await batch.submit(fake_client)

        assert replies == [True, True]
        fake_client.pipeline.assert_called_once_with(transaction=False)
        assert pipe.set.call_count == 2
        pipe.set.assert_any_call("a", b"1", ex=30)
        pipe.set.assert_any_call("b", b"", ex=30)
        pipe.execute.assert_awaited_once()
        fake_client.mset.assert_not_called()

    @pytest.mark.asyncio
    async def test_pipeline_failure_propagates(self, fake_client) -> None:
        """A failed flush fails the whole batch."""
        pipe = fake_client.pipeline.return_value
        pipe.execute.side_effect = RedisConnectionError("connection reset")
        batch = WriteBatch.from_values({"a": Payload(b"1")}, ttl=5)

        with pytest.raises(RedisConnectionError):
            await batch.submit(fake_client)
