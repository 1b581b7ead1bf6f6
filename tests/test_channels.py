from __future__ import annotations

import asyncio
import threading

import pytest

from serialmon.channels import Channel, ChannelClosed
from serialmon.errors import ChannelSendError
from serialmon.messages import Raw, Stop


@pytest.mark.asyncio
async def test_channel_is_fifo() -> None:
    channel: Channel[int] = Channel("numbers")
    for value in range(5):
        channel.send(value)

    assert [await channel.recv() for _ in range(5)] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_try_recv_never_waits() -> None:
    channel: Channel[str] = Channel()
    assert channel.try_recv() is None
    channel.send("line\n")
    assert channel.try_recv() == "line\n"
    assert channel.try_recv() is None


@pytest.mark.asyncio
async def test_close_delivers_pending_items_first() -> None:
    channel: Channel[str] = Channel()
    channel.send("a")
    channel.close()

    assert await channel.recv() == "a"
    with pytest.raises(ChannelClosed):
        await channel.recv()
    with pytest.raises(ChannelClosed):
        channel.try_recv()


@pytest.mark.asyncio
async def test_close_wakes_a_waiting_receiver() -> None:
    channel: Channel[str] = Channel()
    waiter = asyncio.ensure_future(channel.recv())
    await asyncio.sleep(0)
    channel.close()

    with pytest.raises(ChannelClosed):
        await asyncio.wait_for(waiter, timeout=1)


@pytest.mark.asyncio
async def test_send_after_close_raises() -> None:
    channel: Channel[Stop] = Channel("input")
    channel.close()
    with pytest.raises(ChannelSendError):
        channel.send(Stop())


@pytest.mark.asyncio
async def test_send_from_another_thread() -> None:
    channel: Channel[Raw] = Channel("input")
    worker = threading.Thread(target=lambda: channel.send(Raw("from thread")))
    worker.start()
    worker.join()

    assert await asyncio.wait_for(channel.recv(), timeout=1) == Raw("from thread")


@pytest.mark.skip(reason="backpressure policy for a stalled display (bound, block or drop oldest) is undecided")
@pytest.mark.asyncio
async def test_output_channel_backpressure_policy() -> None:
    channel: Channel[str] = Channel("output")
    for index in range(100_000):
        channel.send(f"line {index}\n")
    assert channel.pending() < 100_000
