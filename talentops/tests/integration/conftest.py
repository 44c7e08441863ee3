"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from talentops.core.store import create_store_group
from talentops.gateway.services.notifier import Notifier


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path):
    """集成测试用 FastAPI app"""
    os.environ["TALENTOPS_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["TALENTOPS_PROOFS_DIR"] = str(tmp_path / "proofs")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from talentops.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(
        str(tmp_path / "test.db"),
        str(tmp_path / "proofs"),
        app.state.proof_config,
    )
    app.state.store_group = store_group
    app.state.notifier = Notifier()

    yield app

    await store_group.conn.close()
    os.environ.pop("TALENTOPS_DB_PATH", None)
    os.environ.pop("TALENTOPS_PROOFS_DIR", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
