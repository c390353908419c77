import asyncio
import inspect
import pathlib
import sys
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aptomizer.config import AppSettings  # noqa: E402
from aptomizer.db.session import Database  # noqa: E402
from aptomizer.main import create_app  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            arguments = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**arguments))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


class StubGateway:
    """Stands in for :class:`ChainGateway` so API tests never leave the process."""

    def __init__(self, snapshot=None, error: Exception | None = None) -> None:
        self.snapshot = snapshot
        self.error = error
        self.portfolio_calls: list[tuple[str, int | None]] = []
        self.closed = False

    async def portfolio(self, ai_wallet_address: str, risk_tolerance: int | None = None):
        self.portfolio_calls.append((ai_wallet_address, risk_tolerance))
        if self.error is not None:
            raise self.error
        return self.snapshot

    async def agent_for(self, wallet):
        raise AssertionError("tests must not build a signing agent")

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path: pathlib.Path) -> AppSettings:
    return AppSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'aptomizer.db'}",
        encryption_key="test-encryption-secret",
        openai_api_key=None,
        telemetry_enabled=False,
    )


@pytest.fixture
def stub_gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def make_client(settings: AppSettings):
    """Return a factory producing an async context manager around a running app."""

    def _factory(gateway, *, openai_client=None):
        database = Database(settings.database_url)
        app = create_app(database=database, gateway=gateway, settings=settings)
        if openai_client is not None:
            app.state.openai = openai_client

        @asynccontextmanager
        async def _manager():
            async with app.router.lifespan_context(app):
                transport = ASGITransport(app=app)
                async with AsyncClient(transport=transport, base_url="http://test") as client:
                    yield client

        return _manager

    return _factory
