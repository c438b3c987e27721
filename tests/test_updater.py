import sys

import pytest
import requests

import imgoptim.updater as updater
from imgoptim.errors import UpdateError
from imgoptim.updater import compare_versions, install_binary, platform_target, update_self


@pytest.mark.parametrize("current,latest", [
    ("1.0.0", "1.0.1"),
    ("1.0.0", "1.1.0"),
    ("1.0.0", "2.0.0"),
    ("v1.0.0", "v1.0.1"),
    ("1.0.0", "v1.0.1"),
    ("1.0", "1.0.1"),
    ("0.9.0", "1.0.0"),
])
def test_update_available(current, latest):
    assert compare_versions(current, latest)


@pytest.mark.parametrize("current,latest", [
    ("1.0.1", "1.0.0"),
    ("2.0.0", "1.9.9"),
    ("1.0.0", "1.0.0"),
    ("1.0", "1.0"),
    ("1.0.1", "1.0"),
])
def test_no_update(current, latest):
    assert not compare_versions(current, latest)


@pytest.mark.parametrize("current,latest", [("invalid", "1.0.0"), ("1.0.0", "invalid"), ("1.x.0", "1.0.0")])
def test_invalid_versions(current, latest):
    with pytest.raises(UpdateError):
        compare_versions(current, latest)


@pytest.mark.parametrize("system,machine,expected", [
    ("Linux", "x86_64", "x86_64-unknown-linux-gnu"),
    ("Linux", "aarch64", "aarch64-unknown-linux-gnu"),
    ("Linux", "arm64", "aarch64-unknown-linux-gnu"),
    ("Darwin", "x86_64", "x86_64-apple-darwin"),
    ("Darwin", "arm64", "aarch64-apple-darwin"),
    ("Windows", "AMD64", "x86_64-pc-windows-msvc"),
])
def test_platform_target(system, machine, expected):
    assert platform_target(system, machine) == expected


def test_unsupported_platform():
    with pytest.raises(UpdateError, match='Unsupported platform'):
        platform_target('SunOS', 'sparc')


class FakeResponse:
    def __init__(self, payload=None, content=b'', status=200):
        self._payload = payload
        self._content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self._content), chunk_size):
            yield self._content[i:i + chunk_size]


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = responses
        self.urls = []

    def get(self, url, **kwargs):
        self.urls.append(url)
        return self.responses[url]


def _release(tag, target):
    return {
        'tag_name': tag,
        'assets': [{'name': f'{updater.BINARY_PREFIX}-{target}', 'browser_download_url': 'https://example.test/bin'}],
    }


def test_already_latest(monkeypatch):
    monkeypatch.setattr(updater, '__version__', '1.3.0')
    session = FakeSession({updater.RELEASES_URL: FakeResponse(_release('v1.3.0', 'x'))})
    assert update_self(session) is False
    assert session.urls == [updater.RELEASES_URL]


def test_api_failure(monkeypatch):
    session = FakeSession({updater.RELEASES_URL: FakeResponse(status=503)})
    with pytest.raises(UpdateError, match='check for updates'):
        update_self(session)


def test_missing_platform_asset(monkeypatch):
    monkeypatch.setattr(updater, '__version__', '1.0.0')
    monkeypatch.setattr(updater, 'platform_target', lambda: 'x86_64-unknown-linux-gnu')
    session = FakeSession({updater.RELEASES_URL: FakeResponse(_release('v2.0.0', 'other'))})
    with pytest.raises(UpdateError, match='No binary found'):
        update_self(session)


def test_pip_install_cannot_self_update(monkeypatch):
    monkeypatch.setattr(updater, '__version__', '1.0.0')
    monkeypatch.setattr(updater, 'platform_target', lambda: 'x86_64-unknown-linux-gnu')
    monkeypatch.delattr(sys, 'frozen', raising=False)
    session = FakeSession({updater.RELEASES_URL: FakeResponse(_release('v2.0.0', 'x86_64-unknown-linux-gnu'))})
    with pytest.raises(UpdateError, match='pip install'):
        update_self(session)


def test_frozen_build_is_replaced(tmp_path, monkeypatch):
    exe = tmp_path / 'imgoptim'
    exe.write_bytes(b'old binary')
    monkeypatch.setattr(updater, '__version__', '1.0.0')
    monkeypatch.setattr(updater, 'platform_target', lambda: 'x86_64-unknown-linux-gnu')
    monkeypatch.setattr(updater, 'current_executable', lambda: exe)
    session = FakeSession({
        updater.RELEASES_URL: FakeResponse(_release('v1.1.0', 'x86_64-unknown-linux-gnu')),
        'https://example.test/bin': FakeResponse(content=b'new binary' * 1000),
    })

    assert update_self(session) is True
    assert exe.read_bytes() == b'new binary' * 1000
    assert (tmp_path / 'imgoptim.bak').read_bytes() == b'old binary'
    assert not (tmp_path / 'imgoptim.tmp').exists()


def test_install_binary_keeps_backup(tmp_path):
    exe = tmp_path / 'tool'
    exe.write_bytes(b'v1')
    downloaded = tmp_path / 'tool.tmp'
    downloaded.write_bytes(b'v2')

    backup = install_binary(downloaded, exe)

    assert backup.read_bytes() == b'v1'
    assert exe.read_bytes() == b'v2'
    assert not downloaded.exists()


def test_release_names_match_published_assets():
    assert updater.RELEASES_URL == 'https://api.github.com/repos/nixuuu/image-optimizer/releases/latest'
    assert updater.BINARY_PREFIX == 'image-optimizer'


def test_download_write_failure_is_update_error(tmp_path):
    session = FakeSession({'https://example.test/bin': FakeResponse(content=b'new')})
    with pytest.raises(UpdateError, match='Failed to write updated binary'):
        updater.download_to(session, 'https://example.test/bin', tmp_path / 'missing' / 'imgoptim.tmp')


def test_cli_update_write_failure_exits_cleanly(tmp_path, monkeypatch, capsys):
    from imgoptim.cli import main

    exe = tmp_path / 'bin' / 'imgoptim'
    exe.parent.mkdir()
    exe.write_bytes(b'old binary')
    session = FakeSession({
        updater.RELEASES_URL: FakeResponse(_release('v9.0.0', 'x86_64-unknown-linux-gnu')),
        'https://example.test/bin': FakeResponse(content=b'new binary'),
    })
    monkeypatch.setattr(updater.requests, 'Session', lambda: session)
    monkeypatch.setattr(updater, 'platform_target', lambda: 'x86_64-unknown-linux-gnu')
    monkeypatch.setattr(updater, 'current_executable', lambda: exe)

    def read_only_open(self, mode='r', *args, **kwargs):
        raise PermissionError(13, 'Permission denied', str(self))

    monkeypatch.setattr(updater.Path, 'open', read_only_open)

    assert main(['--update']) == 1
    assert 'Failed to write updated binary' in capsys.readouterr().err
    monkeypatch.undo()
    assert exe.read_bytes() == b'old binary'
    assert not (tmp_path / 'bin' / 'imgoptim.tmp').exists()
