import aiohttp
import pytest

from linkshelf.config import Config
from linkshelf.service import LinkService


def _memory_config() -> Config:
    return Config({"linkshelf": {"store": {"in_memory": True}}})


@pytest.mark.asyncio
async def test_close_leaves_borrowed_session_open():
    async with aiohttp.ClientSession() as session:
        svc = LinkService.from_config(_memory_config(), session=session)
        await svc.close()

        assert svc.session is session
        assert not session.closed


@pytest.mark.asyncio
async def test_close_shuts_own_session():
    svc = LinkService.from_config(_memory_config())

    async with svc:
        assert not svc.session.closed

    assert svc.session.closed
