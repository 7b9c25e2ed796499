"""Tests for the reader/writer lock and the shared render configuration."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from termcam.domain.models import RenderConfig, RenderMode, WindowScale
from termcam.pipeline.shared import ReadWriteLock, SharedRenderConfig


class TestReadWriteLock:
    @pytest.mark.asyncio
    async def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        async with lock.read():
            async with lock.read():
                assert lock.readers == 2
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []

        async def reader() -> None:
            async with lock.read():
                order.append("read")

        async with lock.write():
            assert lock.writing
            task = asyncio.create_task(reader())
            await asyncio.sleep(0.01)
            assert order == []
            order.append("write")
        await asyncio.wait_for(task, timeout=1)
        assert order == ["write", "read"]

    @pytest.mark.asyncio
    async def test_writer_waits_for_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []

        async def writer() -> None:
            async with lock.write():
                order.append("write")

        async with lock.read():
            task = asyncio.create_task(writer())
            await asyncio.sleep(0.01)
            assert order == []
            order.append("read")
        await asyncio.wait_for(task, timeout=1)
        assert order == ["read", "write"]

    @pytest.mark.asyncio
    async def test_waiting_writer_blocks_new_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []

        async def writer() -> None:
            async with lock.write():
                order.append("write")

        async def late_reader() -> None:
            async with lock.read():
                order.append("late read")

        async with lock.read():
            writer_task = asyncio.create_task(writer())
            await asyncio.sleep(0.01)
            reader_task = asyncio.create_task(late_reader())
            await asyncio.sleep(0.01)
            assert order == []
        await asyncio.wait_for(asyncio.gather(writer_task, reader_task), timeout=1)
        assert order == ["write", "late read"]


class TestSharedRenderConfig:
    @pytest.mark.asyncio
    async def test_snapshot(self, shared_config: SharedRenderConfig, render_config: RenderConfig) -> None:
        assert await shared_config.snapshot() == render_config

    @pytest.mark.asyncio
    async def test_update(self, shared_config: SharedRenderConfig) -> None:
        updated = await shared_config.update(lambda c: c.model_copy(update={"mode": c.mode.next()}))
        assert updated.mode is RenderMode.COLORFUL
        assert (await shared_config.snapshot()).mode is RenderMode.COLORFUL

    @pytest.mark.asyncio
    async def test_snapshot_is_stable(self, shared_config: SharedRenderConfig) -> None:
        before = await shared_config.snapshot()
        await shared_config.replace(window_scale=WindowScale.FULL)
        assert before.window_scale is WindowScale.SMALL

    @pytest.mark.asyncio
    async def test_replace_validates(self, shared_config: SharedRenderConfig, render_config: RenderConfig) -> None:
        with pytest.raises(ValidationError):
            await shared_config.replace(display_size=(-5, 3))
        assert await shared_config.snapshot() == render_config

    @pytest.mark.asyncio
    async def test_update_must_return_config(self, shared_config: SharedRenderConfig) -> None:
        with pytest.raises(TypeError):
            await shared_config.update(lambda c: None)  # type: ignore[arg-type, return-value]
        assert not shared_config.lock.writing

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_serialized(self, shared_config: SharedRenderConfig) -> None:
        await asyncio.gather(
            *(shared_config.update(lambda c: c.model_copy(update={"mode": c.mode.next()})) for _ in range(10))
        )
        # Ten steps through a five-mode cycle lands back at the start
        assert (await shared_config.snapshot()).mode is RenderMode.COLORFUL_HALF_BLOCK
