"""End-to-end install against a local release server."""

from __future__ import annotations

import hashlib
import io
import stat
import sys
from pathlib import Path

import pytest

from goose_bin.bootstrap.checksums import ChecksumMismatchError
from goose_bin.bootstrap.download import TransportError
from goose_bin.bootstrap.installer import Installer
from goose_bin.bootstrap.platform import PlatformInfo
from goose_bin.cli.runner import CLIRunner
from goose_bin.config.models import GooseBinConfig

pytestmark = pytest.mark.integration

LINUX = PlatformInfo(os="linux", arch="x86_64")
RELEASE = "/pressly/goose/releases/download/v3.26.0"
SCRIPT = b"#!/bin/sh\necho \"goose $@\"\nexit 4\n"


def manifest_for(payload: bytes, name: str = "goose_linux_x86_64") -> bytes:
    return f"{hashlib.sha256(payload).hexdigest()}  {name}\n".encode()


def make_config(base_url: str, home: Path) -> GooseBinConfig:
    return GooseBinConfig(version="3.26.0", base_url=base_url, home=home, timeout=5.0)


def leftovers(home: Path) -> list:
    bin_dir = home / "bin"
    return sorted(p.name for p in bin_dir.iterdir()) if bin_dir.exists() else []


class TestInstallFlow:
    """Download, redirect, verify and install over real HTTP."""

    def test_install_through_redirect(self, release_server, tmp_path: Path) -> None:
        release_server.add(f"{RELEASE}/checksums.txt", manifest_for(SCRIPT))
        release_server.redirect(
            f"{RELEASE}/goose_linux_x86_64", f"{release_server.base_url}/cdn/goose"
        )
        release_server.add("/cdn/goose", SCRIPT)
        config = make_config(release_server.base_url, tmp_path)

        executable = Installer(config, LINUX).ensure_installed()

        assert executable == tmp_path / "bin" / "goose"
        assert executable.read_bytes() == SCRIPT
        assert stat.S_IMODE(executable.stat().st_mode) == 0o755
        assert leftovers(tmp_path) == ["goose"]
        assert [path for path, _ in release_server.requests] == [
            f"{RELEASE}/checksums.txt",
            f"{RELEASE}/goose_linux_x86_64",
            "/cdn/goose",
        ]
        assert all(agent == "goose-pypi" for _, agent in release_server.requests)

    def test_checksum_mismatch_leaves_nothing(self, release_server, tmp_path: Path) -> None:
        release_server.add(f"{RELEASE}/checksums.txt", manifest_for(b"hash-A"))
        release_server.add(f"{RELEASE}/goose_linux_x86_64", SCRIPT)
        config = make_config(release_server.base_url, tmp_path)

        with pytest.raises(ChecksumMismatchError):
            Installer(config, LINUX).ensure_installed()

        assert leftovers(tmp_path) == []

    def test_missing_asset_is_http_error(self, release_server, tmp_path: Path) -> None:
        release_server.add(f"{RELEASE}/checksums.txt", manifest_for(SCRIPT))
        config = make_config(release_server.base_url, tmp_path)

        with pytest.raises(TransportError, match="HTTP 404"):
            Installer(config, LINUX).ensure_installed()

        assert leftovers(tmp_path) == []

    def test_connection_refused(self, closed_port: int, tmp_path: Path) -> None:
        config = make_config(f"http://127.0.0.1:{closed_port}", tmp_path)

        with pytest.raises(TransportError):
            Installer(config, LINUX).ensure_installed()

        assert leftovers(tmp_path) == []


class TestRunnerEndToEnd:
    """The full shim: install, then run the binary."""

    @pytest.mark.skipif(sys.platform == "win32", reason="runs a POSIX shell script")
    def test_runs_installed_binary(self, release_server, tmp_path: Path, capfd) -> None:
        release_server.add(f"{RELEASE}/checksums.txt", manifest_for(SCRIPT))
        release_server.add(f"{RELEASE}/goose_linux_x86_64", SCRIPT)
        runner = CLIRunner(
            config=make_config(release_server.base_url, tmp_path), platform_info=LINUX
        )

        assert runner.run(["status", "-v"]) == 4
        assert capfd.readouterr().out.strip() == "goose status -v"

        # Second run is served from disk.
        requests = len(release_server.requests)
        assert runner.run([]) == 4
        assert len(release_server.requests) == requests

    def test_unreachable_server_exits_1(self, closed_port: int, tmp_path: Path) -> None:
        stderr = io.StringIO()
        runner = CLIRunner(
            config=make_config(f"http://127.0.0.1:{closed_port}", tmp_path),
            platform_info=LINUX,
            stderr=stderr,
        )

        assert runner.run(["up"]) == 1
        assert stderr.getvalue().startswith("goose-bin: error: Failed to download")
        assert leftovers(tmp_path) == []
