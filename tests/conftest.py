"""Pytest configuration for menubar bridge tests."""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import logging
import shutil
import sys
import tempfile
from collections.abc import Iterator
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

import pytest  # noqa: E402
from menubridge.config.settings import RuntimeConfig  # noqa: E402

from mocks import RecordingDisplay  # noqa: E402

_HAS_PYTEST_ASYNCIO = importlib.util.find_spec("pytest_asyncio") is not None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test to run on asyncio loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Fallback asyncio runner when pytest-asyncio is unavailable."""
    if _HAS_PYTEST_ASYNCIO:
        return None
    if "asyncio" not in pyfuncitem.keywords:
        return None
    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        kwargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
        loop.run_until_complete(test_function(**kwargs))
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        except (RuntimeError, ValueError):
            pass
        loop.close()
        asyncio.set_event_loop(None)
    return True


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    """Close and remove all logging handlers after each test to prevent ResourceWarnings."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        try:
            handler.close()
        except (OSError, RuntimeError):
            pass
        root.removeHandler(handler)


@pytest.fixture()
def socket_dir() -> Iterator[Path]:
    """Short-lived directory for Unix sockets.

    pytest's tmp_path is usually too long for ``sun_path``.
    """
    path = Path(tempfile.mkdtemp(prefix="kl-", dir="/tmp"))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture()
def socket_path(socket_dir: Path) -> Path:
    return socket_dir / "bridge.sock"


@pytest.fixture()
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture()
def runtime_config(socket_path: Path) -> RuntimeConfig:
    return RuntimeConfig(
        socket_path=str(socket_path),
        accept_retry_delay=0.01,
        max_message_bytes=512,
    )
