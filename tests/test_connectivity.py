"""Connectivity transitions and listener scheduling."""

from __future__ import annotations

import asyncio
import logging

from salescoach.services.connectivity import ConnectivityMonitor


def test_listeners_fire_only_on_reconnect():
    calls = []

    async def listener():
        calls.append("online")

    async def scenario():
        monitor = ConnectivityMonitor(online=True)
        monitor.on_online(listener)
        monitor.set_online(True)
        monitor.set_online(False)
        monitor.set_online(True)
        await monitor.wait_listeners()

    asyncio.run(scenario())

    assert calls == ["online"]


def test_crashing_listener_is_logged_and_others_still_run(caplog):
    calls = []

    async def broken():
        raise RuntimeError("listener exploded")

    async def healthy():
        calls.append("drained")

    async def scenario():
        monitor = ConnectivityMonitor(online=False)
        monitor.on_online(broken)
        monitor.on_online(healthy)
        monitor.set_online(True)
        await monitor.wait_listeners()
        return monitor

    with caplog.at_level(logging.ERROR, logger="salescoach.services.connectivity"):
        monitor = asyncio.run(scenario())

    assert calls == ["drained"]
    assert monitor._tasks == set()
    (record,) = [r for r in caplog.records if r.message == "Connectivity listener crashed"]
    assert isinstance(record.exc_info[1], RuntimeError)
