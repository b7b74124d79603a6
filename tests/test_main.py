"""Tests for the startup sequence."""

import asyncio

import pytest

from dualstack_echo import main as main_module
from dualstack_echo.addresses import HostInfo
from dualstack_echo.server import BindError


@pytest.fixture
def no_lookups(monkeypatch):
    async def fake_resolve():
        return HostInfo()

    monkeypatch.setattr(main_module, 'resolve', fake_resolve)


def test_run_fails_when_no_port_is_free(monkeypatch, no_lookups):
    async def no_port(start, end):
        return None

    def never_bind(port):
        raise AssertionError("must not bind without a port")

    monkeypatch.setattr(main_module, 'find_available_port', no_port)
    monkeypatch.setattr(main_module, 'bind_pair', never_bind)
    assert asyncio.run(main_module.run(6881, 6900)) == 1


def test_run_fails_when_bind_loses_the_race(monkeypatch, no_lookups):
    served = []

    async def port_found(start, end):
        return start

    def lost_race(port):
        raise BindError(port, 'IPv6', OSError(98, 'Address already in use'))

    async def fake_serve(listener4, listener6):
        served.append((listener4, listener6))

    monkeypatch.setattr(main_module, 'find_available_port', port_found)
    monkeypatch.setattr(main_module, 'bind_pair', lost_race)
    monkeypatch.setattr(main_module, 'serve_forever', fake_serve)
    assert asyncio.run(main_module.run(6881, 6900)) == 1
    assert served == []


def test_run_serves_on_the_scanned_port(monkeypatch, no_lookups):
    calls = []

    async def port_found(start, end):
        calls.append(('scan', start, end))
        return 6885

    def fake_bind(port):
        calls.append(('bind', port))
        return 'v4', 'v6'

    async def fake_serve(listener4, listener6):
        calls.append(('serve', listener4, listener6))

    monkeypatch.setattr(main_module, 'find_available_port', port_found)
    monkeypatch.setattr(main_module, 'bind_pair', fake_bind)
    monkeypatch.setattr(main_module, 'serve_forever', fake_serve)
    assert asyncio.run(main_module.run(6881, 6900)) == 0
    assert calls == [('scan', 6881, 6900), ('bind', 6885), ('serve', 'v4', 'v6')]


def test_main_exits_with_run_status(monkeypatch):
    async def failing_run():
        return 1

    monkeypatch.setattr(main_module, 'run', failing_run)
    with pytest.raises(SystemExit) as excinfo:
        main_module.main()
    assert excinfo.value.code == 1


def test_report_host_info_logs_every_field(monkeypatch):
    lines = []
    monkeypatch.setattr(main_module.logger, 'info', lambda msg: lines.append(('info', msg)))
    monkeypatch.setattr(main_module.logger, 'warning', lambda msg: lines.append(('warning', msg)))
    main_module.report_host_info(HostInfo())
    assert [level for level, _ in lines] == ['warning'] * 4
