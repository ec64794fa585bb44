from __future__ import annotations

import io
import json
import os
import subprocess
import sys
import tarfile
import tempfile
import unittest
from pathlib import Path
from typing import Dict


EDGERC = """\
[default]
client_secret = SOYtPlXd2d8vH+xHA/2+Ffp4czzXNfRlEnl/kpszrGk=
host = akaa-baseurl-xxxxxxxxxxx-xxxxxxxxxxxxx.luna.akamaiapis.net
access_token = akab-access-token-xxx-xxxxxxxxxxxxxxxx
client_token = akab-client-token-xxx-xxxxxxxxxxxxxxxx

[staging]
client_secret = c3RhZ2luZy1zZWNyZXQ=
host = akab-staging.luna.akamaiapis.net
access_token = akab-access-staging
client_token = akab-client-staging
"""


def _build_code_dir(root: Path, *, version: str = "1.0.1") -> Path:
    code = root / "helloworld"
    code.mkdir()
    (code / "main.js").write_text("export function onClientRequest(request) {}\n", encoding="utf-8")
    manifest = {"edgeworker-version": version, "bundle-version": 1, "api-version": "0.3", "description": "hi"}
    (code / "bundle.json").write_text(json.dumps(manifest), encoding="utf-8")
    return code


def _write_tar(path: Path, members: Dict[str, bytes]) -> Path:
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members.items():
            ti = tarfile.TarInfo(name)
            ti.size = len(data)
            tar.addfile(ti, io.BytesIO(data))
    return path


class CLIIntegrationTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.cache = self.root / "cache"
        self.cache.mkdir()
        self.edgerc = self.root / ".edgerc"
        self.edgerc.write_text(EDGERC, encoding="utf-8")

    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "ewbundle.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        env["AKAMAI_CLI_CACHE_PATH"] = str(self.cache)
        env["AKAMAI_EDGERC"] = str(self.edgerc)
        env.pop("AKAMAI_EDGERC_SECTION", None)
        env.pop("AKAMAI_EDGEWORKERS_DEBUG", None)
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def test_build_then_validate(self):
        code = _build_code_dir(self.root)
        build_proc = self.run_cli(["build", "4242", str(code), "--json"])
        built = json.loads(build_proc.stdout)
        path = Path(built["tarballPath"])
        self.assertEqual(path.parent, self.cache / "edgeworkers-cli" / "edgeworkers" / "4242")
        self.assertTrue(path.name.startswith("ew_1.0.1_") and path.name.endswith(".tgz"))
        self.assertTrue(path.is_file())

        validate_proc = self.run_cli(["validate", "4242", str(path), "--json"])
        checked = json.loads(validate_proc.stdout)
        self.assertEqual(checked["tarballChecksum"], built["tarballChecksum"])

        checksum_proc = self.run_cli(["checksum", str(path), "--expect", built["tarballChecksum"]])
        self.assertIn("OK", checksum_proc.stdout)
        mismatch = self.run_cli(["checksum", str(path), "--expect", "00" * 32], expect=1)
        self.assertIn("MISMATCH", mismatch.stdout)

        list_proc = self.run_cli(["list", "4242"])
        self.assertIn(path.name, list_proc.stdout)
        self.assertIn("1.0.1", list_proc.stdout)

    def test_build_text_output(self):
        code = _build_code_dir(self.root)
        proc = self.run_cli(["build", "7", str(code)])
        self.assertIn("Bundle archive:", proc.stdout)
        self.assertIn("SHA-256 checksum:", proc.stdout)

    def test_build_failures_exit_nonzero(self):
        code = _build_code_dir(self.root)
        (code / "bundle.json").write_text('{"edgeworker-version": "1.0", "bundle-version": 0, "api-version": ""}')
        proc = self.run_cli(["build", "7", str(code)], expect=2)
        self.assertIn("Error: Format for field 'bundle-version' is invalid", proc.stderr)

        (code / "main.js").unlink()
        proc = self.run_cli(["build", "7", str(code)], expect=2)
        self.assertIn("is not found", proc.stderr)
        self.assertFalse(list((self.cache / "edgeworkers-cli" / "edgeworkers").glob("7/*.tgz")))

    def test_validate_failures_exit_nonzero(self):
        proc = self.run_cli(["validate", "1", str(self.root / "missing.tgz")], expect=2)
        self.assertIn("is not found", proc.stderr)

        partial = _write_tar(self.root / "partial.tgz", {"main.js": b"", "other.js": b"", "x.js": b""})
        proc = self.run_cli(["validate", "1", str(partial)], expect=2)
        self.assertIn("main.js and/or bundle.json is not found", proc.stderr)

    def test_manifest_command(self):
        code = _build_code_dir(self.root, version="v2~beta")
        ok = self.run_cli(["manifest", str(code / "bundle.json")])
        self.assertIn("edgeworker-version=v2~beta", ok.stdout)

        (code / "bundle.json").write_text("{", encoding="utf-8")
        bad = self.run_cli(["manifest", str(code / "bundle.json")], expect=1)
        self.assertIn("not valid JSON", bad.stderr)

    def test_download_dir(self):
        proc = self.run_cli(["download-dir", "55"])
        expected = self.cache / "edgeworkers-cli" / "edgeworkers" / "55"
        self.assertIn(f"Using {expected} as path", proc.stdout)
        self.assertTrue(expected.is_dir())

        proc = self.run_cli(["download-dir", "55", "--path", str(self.root)])
        self.assertIn(f"Using {self.root} as path", proc.stdout)

        proc = self.run_cli(["download-dir", "55", "--path", str(self.root / "nope")], expect=2)
        self.assertIn("The download path does not exist", proc.stderr)

    def test_profile_and_sign(self):
        proc = self.run_cli(["profile"])
        self.assertIn("host: akaa-baseurl-xxxxxxxxxxx-xxxxxxxxxxxxx.luna.akamaiapis.net", proc.stdout)
        self.assertNotIn("SOYtPlXd2d8vH", proc.stdout)

        proc = self.run_cli(["--section", "staging", "profile", "--list"])
        self.assertIn("  default", proc.stdout)
        self.assertIn("* staging", proc.stdout)

        proc = self.run_cli(["--section", "staging", "sign", "GET", "/edgeworkers/v1/ids"])
        header = proc.stdout.strip()
        self.assertTrue(header.startswith("EG1-HMAC-SHA256 client_token=akab-client-staging;"))
        self.assertIn(";signature=", header)

        proc = self.run_cli(["--section", "missing", "profile"], expect=2)
        self.assertIn("Section [missing] not found", proc.stderr)

    def test_debug_flag(self):
        proc = self.run_cli(["--debug", "download-dir", "1"])
        self.assertIn("Debug:", proc.stderr)

    def test_debug_reports_error_causes(self):
        junk = self.root / "junk.tgz"
        junk.write_bytes(b"\x00\x01not an archive" * 8)
        plain = self.run_cli(["validate", "1", str(junk)], expect=2)
        self.assertIn("could not be read", plain.stderr)
        self.assertNotIn("caused by:", plain.stderr)

        verbose = self.run_cli(["--debug", "validate", "1", str(junk)], expect=2)
        self.assertIn("could not be read", verbose.stderr)
        self.assertIn("caused by: ReadError:", verbose.stderr)


if __name__ == "__main__":
    unittest.main()
