import os
import sys
import asyncio
from io import BytesIO
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from PIL import Image

# Add src/ to sys.path for imports when the package is not installed
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Keep a developer's local settings out of the test run
os.environ.pop("LINKSHELF_CONFIG", None)
os.environ.setdefault("LINKSHELF_LOG_LEVEL", "WARNING")

from linkshelf.config import Config
from linkshelf.service import LinkService


class FakeRemote:
    """
    In-process stand-in for every HTTP collaborator:

    - the shortening service (``/api/alias``),
    - the favicon aggregation endpoint (``/faviconV2``),
    - target pages (``/page/<name>``).
    """

    def __init__(self) -> None:
        self.base_url = ""
        self.aliases: dict[str, str] = {}
        self.alias_status: dict[str, int] = {}
        self.resolve_delay: dict[str, float] = {}
        self.create_status = 201
        self.create_body: bytes | None = None
        self.created: list[str] = []
        self.resolve_requests: list[str] = []
        # page name -> (status, content type, body)
        self.pages: dict[str, tuple[int, str, bytes]] = {}
        self.page_requests: list = []
        # target url -> (status, content type, body)
        self.favicons: dict[str, tuple[int, str, bytes]] = {}
        self.favicon_requests: list[dict[str, str]] = []

    def page_url(self, name: str) -> str:
        return f"{self.base_url}/page/{name}"

    def add_page(self, name: str, html: str, status: int = 200) -> str:
        self.pages[name] = (status, "text/html; charset=utf-8", html.encode("utf-8"))
        return self.page_url(name)

    # ---------- handlers --------------------------------------------- #

    async def _create(self, request: web.Request) -> web.Response:
        payload = await request.json()
        if self.create_status not in (200, 201):
            return web.Response(status=self.create_status, text="create refused")
        if self.create_body is not None:
            return web.Response(status=self.create_status, body=self.create_body)
        alias = f"ALIAS{len(self.created) + 1}"
        self.created.append(payload["url"])
        self.aliases[alias] = payload["url"]
        return web.json_response(
            {
                "alias": alias,
                "_links": {
                    "self": f"{self.base_url}/api/alias/{alias}",
                    "short": f"{self.base_url}/{alias}",
                },
            },
            status=self.create_status,
        )

    async def _resolve(self, request: web.Request) -> web.Response:
        server_id = request.match_info["server_id"]
        self.resolve_requests.append(server_id)
        delay = self.resolve_delay.get(server_id)
        if delay:
            await asyncio.sleep(delay)
        if server_id in self.alias_status:
            return web.Response(status=self.alias_status[server_id], text="upstream exploded")
        if server_id not in self.aliases:
            return web.Response(status=404, text="alias not found")
        return web.json_response({"url": self.aliases[server_id]})

    async def _favicon(self, request: web.Request) -> web.Response:
        self.favicon_requests.append(dict(request.query))
        status, ctype, body = self.favicons.get(
            request.query.get("url", ""), (404, "text/plain", b"no icon")
        )
        return web.Response(status=status, body=body, headers={"Content-Type": ctype})

    async def _page(self, request: web.Request) -> web.Response:
        self.page_requests.append(request.headers.copy())
        status, ctype, body = self.pages.get(
            request.match_info["name"], (404, "text/plain", b"missing")
        )
        return web.Response(status=status, body=body, headers={"Content-Type": ctype})

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/alias", self._create)
        app.router.add_get("/api/alias/{server_id}", self._resolve)
        app.router.add_get("/faviconV2", self._favicon)
        app.router.add_get("/page/{name}", self._page)
        return app


def make_config(base_url: str, **pipeline) -> Config:
    return Config(
        {
            "linkshelf": {
                "service": {"base_url": base_url, "request_timeout": 5},
                "metadata": {
                    "favicon_endpoint": f"{base_url}/faviconV2",
                    "fetch_timeout": 5,
                },
                "store": {"in_memory": True},
                "pipeline": pipeline,
            }
        }
    )


def png_bytes(size: int = 1) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (size, size), (255, 0, 0, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def one_pixel_png() -> bytes:
    return png_bytes(1)


@pytest_asyncio.fixture
async def remote():
    fake = FakeRemote()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def service(remote):
    svc = LinkService.from_config(make_config(remote.base_url))
    yield svc
    await svc.close()


@pytest_asyncio.fixture
async def service_factory(remote):
    """Build extra services against ``remote`` with pipeline overrides."""
    opened: list[LinkService] = []

    def _make(**pipeline) -> LinkService:
        svc = LinkService.from_config(make_config(remote.base_url, **pipeline))
        opened.append(svc)
        return svc

    yield _make
    for svc in opened:
        await svc.close()
