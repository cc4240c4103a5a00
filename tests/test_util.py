from types import SimpleNamespace

import os

from diagwatch.util import VERSION, RuntimeMetadata


def test_current_uses_uname(monkeypatch):
    fake = SimpleNamespace(
        sysname="Linux", release="3.18.48", machine="armv7l", nodename="n", version="v"
    )
    monkeypatch.setattr(os, "uname", lambda: fake)
    meta = RuntimeMetadata.current()
    assert meta.system_os == "Linux 3.18.48"
    assert meta.arch == "armv7l"
    assert meta.version == VERSION


def test_current_falls_back_without_uname(monkeypatch):
    monkeypatch.delattr(os, "uname", raising=False)
    meta = RuntimeMetadata.current()
    assert meta.arch
    assert meta.system_os
    assert meta.version == VERSION


def test_to_dict_round_trip():
    meta = RuntimeMetadata(version="1.2.3", system_os="linux", arch="arm")
    data = meta.to_dict()
    assert data == {"version": "1.2.3", "system_os": "linux", "arch": "arm"}
    assert RuntimeMetadata(**data) == meta