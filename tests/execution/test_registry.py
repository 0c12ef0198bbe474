"""Tests for llm_orch.execution.registry - ids, slots, exactly-once take."""

from __future__ import annotations

import asyncio
import threading

import pytest

from llm_orch.core.errors import ChannelClosedError, OrchestrationError, RequestNotFoundError
from llm_orch.core.result import Ok
from llm_orch.execution.registry import RequestId, ResponseRegistry, random_u64


class TestRequestId:
    def test_int_and_str(self):
        request_id = RequestId(12345, str)
        assert int(request_id) == 12345
        assert str(request_id) == "12345"

    def test_hashable_and_comparable(self):
        assert RequestId(1, str) == RequestId(1, str)
        assert RequestId(1, str) != RequestId(1, int)
        assert len({RequestId(1, str), RequestId(1, str)}) == 1

    def test_random_u64_range(self):
        for _ in range(100):
            assert 0 <= random_u64() < 2**64


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_creates_live_slot(self):
        registry = ResponseRegistry()
        slot = registry.register(str)
        assert slot.response_type is str
        assert slot.request_id in registry
        assert slot.request_id.value in registry
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_collision_is_regenerated(self):
        registry = ResponseRegistry(id_factory=iter([7, 7, 7, 8]).__next__)
        first = registry.register(str)
        second = registry.register(str)
        assert first.request_id.value == 7
        assert second.request_id.value == 8

    @pytest.mark.asyncio
    async def test_id_reusable_after_take(self):
        registry = ResponseRegistry(id_factory=lambda: 5)
        slot = registry.register(str)
        registry.take(slot.request_id)
        assert registry.register(str).request_id.value == 5

    @pytest.mark.asyncio
    async def test_gives_up_after_repeated_collisions(self):
        registry = ResponseRegistry(id_factory=lambda: 1)
        registry.register(str)
        with pytest.raises(OrchestrationError):
            registry.register(str)

    def test_register_requires_loop(self):
        with pytest.raises(RuntimeError):
            ResponseRegistry().register(str)


class TestTake:
    @pytest.mark.asyncio
    async def test_take_is_exactly_once(self):
        registry = ResponseRegistry()
        slot = registry.register(str)
        assert registry.take(slot.request_id) is slot
        assert slot.request_id not in registry
        with pytest.raises(RequestNotFoundError):
            registry.take(slot.request_id)

    @pytest.mark.asyncio
    async def test_take_by_int(self):
        registry = ResponseRegistry()
        slot = registry.register(str)
        assert registry.take(slot.request_id.value) is slot

    def test_unknown_id(self):
        with pytest.raises(RequestNotFoundError) as exc_info:
            ResponseRegistry().take(42)
        assert exc_info.value.request_id == 42

    def test_contains_rejects_other_types(self):
        assert "1" not in ResponseRegistry()


class TestSlot:
    @pytest.mark.asyncio
    async def test_buffered_until_received(self):
        slot = ResponseRegistry().register(str)
        assert slot.send(Ok("done"))
        assert slot.done
        assert await slot.receive() == Ok("done")

    @pytest.mark.asyncio
    async def test_first_write_wins(self):
        slot = ResponseRegistry().register(str)
        assert slot.send(Ok("first"))
        assert not slot.send(Ok("second"))
        assert not slot.close()
        assert await slot.receive() == Ok("first")

    @pytest.mark.asyncio
    async def test_receive_waits_for_send(self):
        slot = ResponseRegistry().register(str)
        receiver = asyncio.create_task(slot.receive())
        await asyncio.sleep(0)
        assert not receiver.done()
        slot.send(Ok("late"))
        assert await receiver == Ok("late")

    @pytest.mark.asyncio
    async def test_close_delivers_channel_closed(self):
        slot = ResponseRegistry().register(str)
        cause = RuntimeError("crash")
        slot.close(cause)
        result = await slot.receive()
        assert isinstance(result.error, ChannelClosedError)
        assert result.error.__cause__ is cause


class TestThreadSafety:
    @pytest.mark.asyncio
    async def test_concurrent_register_and_take(self):
        registry = ResponseRegistry()
        loop = asyncio.get_running_loop()
        slots = [registry.register(str) for _ in range(200)]
        taken: list[int] = []
        errors: list[Exception] = []
        lock = threading.Lock()

        def worker(chunk) -> None:
            for slot in chunk:
                try:
                    registry.take(slot.request_id)
                    registry.register(str, loop=loop)
                except Exception as exc:  # pragma: no cover - surfaced by assertion
                    errors.append(exc)
                else:
                    with lock:
                        taken.append(slot.request_id.value)

        threads = [threading.Thread(target=worker, args=(slots[i::4],)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(taken) == 200
        assert len(registry) == 200
