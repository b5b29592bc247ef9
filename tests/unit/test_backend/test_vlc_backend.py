"""Tests for the VLC rc backend (prompt protocol + retry)."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, patch

import pytest

from vlc_control.backend.vlc import VlcBackend
from vlc_control.domain.models import RetryPolicy
from vlc_control.errors import BackendProtocolError, BackendUnreachableError


class TestVlcBackendInit:
    def test_defaults(self) -> None:
        backend = VlcBackend()
        assert backend.address == "127.0.0.1:54322"
        assert backend.retry == RetryPolicy()
        assert backend._read_timeout is None

    def test_invalid_address(self) -> None:
        with pytest.raises(ValueError):
            VlcBackend(address="nowhere")

    def test_prompt_must_be_single_byte(self) -> None:
        with pytest.raises(ValueError, match="single byte"):
            VlcBackend(prompt=b">>")


class TestExchange:
    @pytest.mark.asyncio
    async def test_round_trip(self, fake_vlc_server) -> None:
        async with fake_vlc_server() as vlc:
            backend = VlcBackend(address=vlc.address)
            response = await backend.exchange(b"play\n")
        assert response == b"OK>"
        assert vlc.received == [b"play\n"]
        assert vlc.connections == 1

    @pytest.mark.asyncio
    async def test_reads_through_greeting_text(self, fake_vlc_server) -> None:
        async with fake_vlc_server(
            greeting=b"VLC media player 3.0.18\nCommand Line Interface initialized.\n> ",
            reply=b"Type 'pause' to continue.\n> ",
        ) as vlc:
            backend = VlcBackend(address=vlc.address)
            response = await backend.exchange(b"pause\n")
        assert response == b" Type 'pause' to continue.\n>"
        assert vlc.received == [b"pause\n"]

    @pytest.mark.asyncio
    async def test_eof_before_prompt(self, fake_vlc_server) -> None:
        async with fake_vlc_server(drop_first=1) as vlc:
            backend = VlcBackend(address=vlc.address)
            with pytest.raises(BackendProtocolError, match="before prompt"):
                await backend.exchange(b"play\n")

    @pytest.mark.asyncio
    async def test_connection_refused(self, free_port: int) -> None:
        backend = VlcBackend(address=f"127.0.0.1:{free_port}")
        with pytest.raises(OSError):
            await backend.exchange(b"play\n")

    @pytest.mark.asyncio
    async def test_read_timeout(self, fake_vlc_server) -> None:
        async with fake_vlc_server(silent=True) as vlc:
            backend = VlcBackend(address=vlc.address, read_timeout=0.05)
            with pytest.raises(BackendProtocolError, match="No prompt"):
                await backend.exchange(b"play\n")

    @pytest.mark.asyncio
    async def test_new_connection_per_command(self, fake_vlc_server) -> None:
        async with fake_vlc_server() as vlc:
            backend = VlcBackend(address=vlc.address)
            await backend.forward(b"play\n")
            await backend.forward(b"pause\n")
        assert vlc.connections == 2
        assert vlc.received == [b"play\n", b"pause\n"]


class TestForwardRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        sleep = AsyncMock()
        backend = VlcBackend(sleep=sleep)
        with patch.object(backend, "exchange", return_value=b"OK>") as exchange:
            assert await backend.forward(b"play\n") == b"OK>"
        exchange.assert_awaited_once_with(b"play\n")
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backoff_delays(self) -> None:
        sleep = AsyncMock()
        backend = VlcBackend(sleep=sleep)
        with patch.object(
            backend, "exchange",
            side_effect=[ConnectionRefusedError(), ConnectionResetError(), b"OK>"],
        ) as exchange:
            assert await backend.forward(b"play\n") == b"OK>"
        assert exchange.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_exhaustion(self, caplog: pytest.LogCaptureFixture) -> None:
        sleep = AsyncMock()
        backend = VlcBackend(sleep=sleep)
        with patch.object(
            backend, "exchange", side_effect=ConnectionRefusedError("refused"),
        ) as exchange:
            with caplog.at_level(logging.WARNING, logger="vlc_control"):
                with pytest.raises(BackendUnreachableError) as excinfo:
                    await backend.forward(b"play\n")
        assert exchange.await_count == 3
        assert sleep.await_count == 2
        assert excinfo.value.attempts == 3
        assert excinfo.value.address == "127.0.0.1:54322"
        assert isinstance(excinfo.value.__cause__, ConnectionRefusedError)
        assert "failed permanently" in caplog.text
        assert caplog.text.count("retrying") == 2

    @pytest.mark.asyncio
    async def test_protocol_error_is_retried(self) -> None:
        backend = VlcBackend(sleep=AsyncMock())
        with patch.object(
            backend, "exchange", side_effect=[BackendProtocolError("eof"), b"OK>"],
        ) as exchange:
            await backend.forward(b"play\n")
        assert exchange.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_not_retried(self) -> None:
        backend = VlcBackend(sleep=AsyncMock())
        with patch.object(backend, "exchange", side_effect=RuntimeError("bug")) as exchange:
            with pytest.raises(RuntimeError):
                await backend.forward(b"play\n")
        assert exchange.await_count == 1

    @pytest.mark.asyncio
    async def test_real_server_recovers_on_third_attempt(self, fake_vlc_server) -> None:
        async with fake_vlc_server(drop_first=2) as vlc:
            backend = VlcBackend(address=vlc.address)
            loop = asyncio.get_running_loop()
            started = loop.time()
            response = await backend.forward(b"play\n")
            elapsed = loop.time() - started
        assert response == b"OK>"
        assert vlc.connections == 3
        assert vlc.received == [b"play\n"]
        # 100 ms after attempt 1, 200 ms after attempt 2
        assert 0.28 <= elapsed < 2.0

    @pytest.mark.asyncio
    async def test_real_refused_port_gives_up(self, free_port: int) -> None:
        sleep = AsyncMock()
        backend = VlcBackend(address=f"127.0.0.1:{free_port}", sleep=sleep)
        with pytest.raises(BackendUnreachableError):
            await backend.forward(b"play\n")
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_silent_server_with_timeout_gives_up(self, fake_vlc_server) -> None:
        async with fake_vlc_server(silent=True) as vlc:
            backend = VlcBackend(address=vlc.address, read_timeout=0.05, sleep=AsyncMock())
            with pytest.raises(BackendUnreachableError) as excinfo:
                await backend.forward(b"play\n")
        assert vlc.connections == 3
        assert isinstance(excinfo.value.__cause__, BackendProtocolError)
