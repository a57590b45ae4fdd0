import json
import threading
from typing import Dict, List, Union

import pytest
import requests

from gallery_index.gallery_index.nozomi import encode_posting_list

DOMAIN = "ltn.example.net"
ASSET_DOMAIN = "example.net"

GG_URL = f"https://{DOMAIN}/gg.js"

GG_SCRIPT = """'use strict';
gg = {
m: function(g) {
var o = 0;
switch (g) {
case 1:
case 17:
case 3833:
o = 1; break;
}
return o;
},
s: function(h) { var m = /(..)(.)$/.exec(h); return parseInt(m[2]+m[1], 16).toString(10); },
b: '1729526401/'
};
"""


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", text: str = None):
        self.status_code = status_code
        self.content = content
        self.text = text if text is not None else content.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    Stand-in for requests.Session.

    Routes are url -> FakeResponse or an exception instance to raise.
    Unknown URLs answer 404.
    """

    def __init__(self, routes: Dict[str, Union[FakeResponse, Exception]] = None):
        self.routes = dict(routes or {})
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None, **kwargs):
        with self._lock:
            self.calls.append(url)
        outcome = self.routes.get(url, FakeResponse(404))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def count(self, url: str) -> int:
        with self._lock:
            return self.calls.count(url)


def nozomi_response(ids) -> FakeResponse:
    return FakeResponse(200, encode_posting_list(ids))


def nozomi_route(path: str) -> str:
    if path == "index-all":
        return f"https://{DOMAIN}/index-all.nozomi"
    return f"https://{DOMAIN}/n/{path}.nozomi"


def gallery_route(gallery_id) -> str:
    return f"https://{DOMAIN}/galleries/{gallery_id}.js"


def gallery_document(gallery_id: int, **overrides) -> FakeResponse:
    data = {
        "id": gallery_id,
        "title": f"Gallery {gallery_id}",
        "type": "doujinshi",
        "language": "korean",
        "tags": [
            {"tag": "glasses", "female": "1", "male": ""},
            {"tag": "shota", "male": "1"},
            {"tag": "full color"},
        ],
        "artists": [{"artist": "someartist"}],
        "groups": [{"group": "somegroup"}],
        "parodys": [{"parody": "original"}],
        "characters": [{"character": "alice"}],
        "files": [
            {"name": "01.jpg", "width": 1280, "height": 1810, "hash": "a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f9e", "haswebp": 1},
            {"name": "02.jpg", "width": 1280, "height": 1810, "hash": "ffeeddccbbaa99887766554433221100ffeeddccbbaa99887766554433221100", "haswebp": 0},
        ],
    }
    data.update(overrides)
    return FakeResponse(200, text="var galleryinfo = " + json.dumps(data))


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def timeout_error():
    return requests.Timeout("read timed out")
