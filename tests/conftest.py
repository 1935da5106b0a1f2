from __future__ import annotations

from html.parser import HTMLParser

import pytest
from click.testing import CliRunner

from md_overlay.config import RenderConfig

VOID_ELEMENTS = {"img", "br", "hr", "input"}


class _StructureParser(HTMLParser):
    """Flatten HTML into tag and text events, ignoring serialization details."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.events: list[tuple] = []

    def handle_starttag(self, tag, attrs):
        self.events.append(("start", tag, tuple(sorted((k, v or "") for k, v in attrs))))

    def handle_startendtag(self, tag, attrs):
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag):
        if tag not in VOID_ELEMENTS:
            self.events.append(("end", tag))

    def handle_data(self, data):
        if self.events and self.events[-1][0] == "data":
            self.events[-1] = ("data", self.events[-1][1] + data)
        else:
            self.events.append(("data", data))


def _structure(html: str) -> list[tuple]:
    parser = _StructureParser()
    parser.feed(html)
    parser.close()
    return parser.events


def _visible_text(html: str) -> str:
    text = "".join(event[1] for event in _structure(html) if event[0] == "data")
    return text.replace("\u00a0", " ")


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


@pytest.fixture(scope="session")
def html_structure():
    """Parse HTML into comparable events; `<img>` and `<img />` are equal."""
    return _structure


@pytest.fixture(scope="session")
def visible_text():
    """Text a browser would show for an HTML fragment, NBSP read as space."""
    return _visible_text


@pytest.fixture(params=["tree", "string"])
def backend_config(request) -> RenderConfig:
    return RenderConfig(backend=request.param)
