from pathlib import Path

import pytest

from linkshelf import cli
from linkshelf.cli import build_parser, format_link
from linkshelf.errors import RecordNotFound
from linkshelf.model import EnrichedLink, ImageIcon, LinkRecord, PlaceholderIcon


def test_parser_global_options_and_commands():
    parser = build_parser()

    args = parser.parse_args(["--config", "cfg.toml", "--memory", "add", "example.com"])

    assert args.config == Path("cfg.toml")
    assert args.memory is True
    assert args.command == "add"
    assert args.url == "example.com"

    args = parser.parse_args(["delete", "A1B2C3"])
    assert args.command == "delete" and args.server_id == "A1B2C3"


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_main_rejects_invalid_url_before_network(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["search", "not a host"])
    assert excinfo.value.code == 2
    assert "invalid URL" in capsys.readouterr().err


def test_format_link_variants():
    record = LinkRecord(server_id="A1", local_id="x")
    partial = EnrichedLink(record=record, url="https://example.com")
    assert format_link(partial) == "partial A1           [...] https://example.com"

    placeholder = partial.enriched(title="https://example.com", icon=PlaceholderIcon("globe"))
    assert format_link(placeholder) == "final   A1           [globe] https://example.com"

    image = partial.enriched(
        title="Example",
        icon=ImageIcon(data=b"", format="PNG", width=16, height=16),
    )
    assert format_link(image) == "final   A1           [PNG 16x16] https://example.com - Example"


class _FakeService:
    def __init__(self, items=None, delete_error=None):
        self.items = items or []
        self.delete_error = delete_error
        self.deleted = []

    async def enrich_all(self):
        for item in self.items:
            yield item

    async def delete(self, server_id):
        if self.delete_error:
            raise self.delete_error
        self.deleted.append(server_id)


@pytest.mark.asyncio
async def test_list_prints_each_snapshot(capsys):
    record = LinkRecord(server_id="A1", local_id="x")
    partial = EnrichedLink(record=record, url="https://example.com")
    service = _FakeService([partial, partial.enriched(title="Ex", icon=PlaceholderIcon())])

    assert await cli._list(service) == 0

    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
    assert out[1].endswith("- Ex")


@pytest.mark.asyncio
async def test_delete_command(capsys):
    service = _FakeService()

    assert await cli._delete(service, "A1") == 0
    assert service.deleted == ["A1"]
    assert "Deleted A1" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_search_and_add_commands(service, capsys):
    assert await cli._search(service, "example.com", save=False) == 0
    assert "ALIAS1" in capsys.readouterr().out
    assert await service.load_all() == []

    assert await cli._search(service, "example.org", save=True) == 0
    assert "Saved ALIAS2" in capsys.readouterr().out
    assert [r.server_id for r in await service.load_all()] == ["ALIAS2"]


@pytest.mark.asyncio
async def test_search_failure_prints_message(service, remote, capsys):
    remote.create_status = 502

    assert await cli._search(service, "example.com", save=False) == 1
    assert "HTTP error: 502" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_run_reports_humanized_errors(monkeypatch, capsys):
    class _Ctx(_FakeService):
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return None

    fake = _Ctx(delete_error=RecordNotFound("A1"))
    monkeypatch.setattr(cli.LinkService, "from_config", classmethod(lambda cls, cfg=None, **kw: fake))

    args = build_parser().parse_args(["--memory", "delete", "A1"])

    assert await cli.run(args) == 1
    assert "Local item not found" in capsys.readouterr().err
