"""Connectivity tracking for the task API.

``ConnectivityMonitor`` keeps a ``NetworkStatus`` updated from a probe
coroutine (normally ``TaskWriter.health_check``) or from manual reports,
and awaits its reconnect callbacks on every offline -> online transition.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from smera.core.constants import DEFAULT_PROBE_INTERVAL_SECONDS
from smera.core.logging import get_logger

_logger = get_logger("sync.connectivity")

Probe = Callable[[], Awaitable[bool]]
ReconnectCallback = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class NetworkStatus:
    """Current connectivity.

    ``was_offline`` is True only on the status reported by the check that
    observed the reconnection; the next online check clears it.
    """

    is_online: bool
    was_offline: bool = False


class ConnectivityMonitor:
    """Tracks API reachability and fires callbacks on reconnection.

    Example usage:
        monitor = ConnectivityMonitor(writer.health_check)
        monitor.on_reconnect(driver.replay)
        await monitor.start(interval_seconds=15.0)
    """

    def __init__(self, probe: Probe | None = None, *, initially_online: bool = True) -> None:
        """Initialize the monitor.

        Args:
            probe: Coroutine returning True when the API is reachable.
                Without a probe, status only changes through ``set_online``.
            initially_online: Status assumed before the first check.
        """
        self._probe = probe
        self._status = NetworkStatus(is_online=initially_online)
        self._callbacks: list[ReconnectCallback] = []
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def status(self) -> NetworkStatus:
        return self._status

    @property
    def is_online(self) -> bool:
        return self._status.is_online

    def on_reconnect(self, callback: ReconnectCallback) -> None:
        """Register a coroutine function awaited after each reconnection."""
        self._callbacks.append(callback)

    async def set_online(self, online: bool) -> NetworkStatus:
        """Record an observed connectivity state.

        Returns:
            The new status.
        """
        previous = self._status
        if online and not previous.is_online:
            self._status = NetworkStatus(is_online=True, was_offline=True)
            _logger.info("connectivity_restored")
            await self._fire_reconnect()
        elif online:
            self._status = NetworkStatus(is_online=True)
        else:
            if previous.is_online:
                _logger.warning("connectivity_lost")
            self._status = NetworkStatus(is_online=False)
        return self._status

    async def check_now(self) -> NetworkStatus:
        """Run the probe once and update the status."""
        if self._probe is None:
            return self._status
        try:
            online = await self._probe()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            _logger.warning("connectivity_probe_error", error=str(e))
            online = False
        return await self.set_online(online)

    async def _fire_reconnect(self) -> None:
        for callback in list(self._callbacks):
            try:
                await callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                _logger.exception(
                    "reconnect_callback_failed",
                    callback=getattr(callback, "__qualname__", repr(callback)),
                )

    async def start(self, interval_seconds: float = DEFAULT_PROBE_INTERVAL_SECONDS) -> None:
        """Start probing periodically in the background."""
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(interval_seconds))
        self._task.add_done_callback(self._on_loop_done)
        _logger.info("connectivity_monitor_started", interval=interval_seconds)

    async def stop(self) -> None:
        """Stop the probing loop."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        _logger.info("connectivity_monitor_stopped")

    def _on_loop_done(self, task: asyncio.Task[None]) -> None:
        """Forget a finished loop so ``start()`` can run a new one, and log a crash."""
        if self._task is task:
            self._task = None
            self._running = False
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error(
                "connectivity_loop_died_unexpectedly",
                error=str(exc),
                last_known_online=self._status.is_online,
            )

    async def _loop(self, interval: float) -> None:
        while self._running:
            await self.check_now()
            await asyncio.sleep(interval)
