"""
Tests for configuration: validation and normalization of SyncConfig,
--ftp-url parsing and YAML profile loading.
"""
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from git2ftp.config import (
    build_config, find_config_file, get_profile, load_config_file,
    parse_ftp_url, resolve_options,
)
from git2ftp.exceptions import ConfigError

REQUIRED = dict(git_directory="/repo", remote_directory="www", to_sha="abc123",
                ftp_url="ftp.example.org:21")


def _options(**kw):
    opts = dict(REQUIRED)
    opts.update(kw)
    return opts


# ── Tests: build_config ───────────────────────────────────────────────────────

class TestBuildConfig(unittest.TestCase):

    def test_directories_get_trailing_slash(self):
        cfg = build_config(_options(sync_directory="src"))
        self.assertEqual(cfg.remote_directory, "www/")
        self.assertEqual(cfg.sync_directory, "src/")

    def test_existing_trailing_slash_kept(self):
        cfg = build_config(_options(remote_directory="www/", sync_directory="src/"))
        self.assertEqual(cfg.remote_directory, "www/")
        self.assertEqual(cfg.sync_directory, "src/")

    def test_empty_sync_directory_stays_empty(self):
        self.assertEqual(build_config(_options()).sync_directory, "")
        self.assertEqual(build_config(_options(sync_directory="")).sync_directory, "")

    def test_head_rejected(self):
        with self.assertRaises(ConfigError) as ctx:
            build_config(_options(to_sha="HEAD"))
        self.assertIn("HEAD", str(ctx.exception))

    def test_user_without_password_rejected(self):
        with self.assertRaises(ConfigError):
            build_config(_options(ftp_user="bob"))

    def test_password_without_user_rejected(self):
        with self.assertRaises(ConfigError):
            build_config(_options(ftp_password="secret"))

    def test_user_and_password_accepted(self):
        cfg = build_config(_options(ftp_user="bob", ftp_password="secret"))
        self.assertEqual((cfg.ftp_user, cfg.ftp_password), ("bob", "secret"))

    def test_missing_required_named(self):
        opts = _options()
        del opts["to_sha"]
        del opts["ftp_url"]
        with self.assertRaises(ConfigError) as ctx:
            build_config(opts)
        self.assertIn("--to-sha", str(ctx.exception))
        self.assertIn("--ftp-url", str(ctx.exception))

    def test_empty_from_sha_means_unset(self):
        self.assertIsNone(build_config(_options(from_sha="")).from_sha)

    def test_config_is_immutable(self):
        cfg = build_config(_options())
        with self.assertRaises(Exception):
            cfg.to_sha = "other"


# ── Tests: --ftp-url ──────────────────────────────────────────────────────────

class TestParseFtpUrl(unittest.TestCase):

    def test_host_and_port(self):
        self.assertEqual(parse_ftp_url("ftp.example.org:2121"), ("ftp", "ftp.example.org", 2121))

    def test_default_ports(self):
        self.assertEqual(parse_ftp_url("ftp.example.org"), ("ftp", "ftp.example.org", 21))
        self.assertEqual(parse_ftp_url("sftp://h.example.org"), ("sftp", "h.example.org", 22))

    def test_ftps(self):
        self.assertEqual(parse_ftp_url("ftps://h.example.org:990"), ("ftps", "h.example.org", 990))

    def test_unsupported_scheme(self):
        with self.assertRaises(ConfigError):
            parse_ftp_url("http://h.example.org")

    def test_bad_port(self):
        with self.assertRaises(ConfigError):
            parse_ftp_url("h.example.org:notaport")

    def test_invalid_url_rejected_by_build_config(self):
        with self.assertRaises(ConfigError):
            build_config(_options(ftp_url="gopher://h"))


# ── Tests: YAML profiles ──────────────────────────────────────────────────────

class TestProfiles(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        self.env = mock.patch.dict(os.environ, {"XDG_CONFIG_HOME": str(self.root / "xdg")})
        self.env.start()

    def tearDown(self):
        self.env.stop()
        self.tmpdir.cleanup()

    def _write(self, content, name=".git2ftp.yaml", where=None):
        p = (where or self.root) / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        return p

    def test_find_in_parent_directory(self):
        p = self._write("profiles: []\n")
        deep = self.root / "a" / "b"
        deep.mkdir(parents=True)
        self.assertEqual(find_config_file(deep), p)

    def test_get_profile_by_name_merges_defaults(self):
        p = self._write(
            "defaults:\n"
            "  ftp-url: ftp.example.org:21\n"
            "  remote-directory: www\n"
            "profiles:\n"
            "  - name: staging\n"
            "    remote-directory: staging\n"
            "  - name: prod\n"
            "    remote_directory: prod\n"
        )
        profile = get_profile(load_config_file(p), "prod")
        self.assertEqual(profile, {"ftp_url": "ftp.example.org:21", "remote_directory": "prod"})

    def test_get_profile_falls_back_to_first(self):
        p = self._write("profiles:\n  - name: only\n    to_sha: abc\n")
        self.assertEqual(get_profile(load_config_file(p), "missing"), {"to_sha": "abc"})

    def test_unknown_keys_dropped(self):
        self.assertEqual(get_profile({"defaults": {"server": "x", "to_sha": "y"}}), {"to_sha": "y"})

    def test_non_mapping_file_rejected(self):
        p = self._write("- just\n- a list\n")
        with self.assertRaises(ConfigError):
            load_config_file(p)

    def test_cli_overrides_profile(self):
        p = self._write(
            "profiles:\n"
            "  - name: default\n"
            "    ftp_url: from-file:21\n"
            "    remote_directory: www\n"
        )
        opts = resolve_options({"ftp_url": "from-cli:21", "remote_directory": None}, p)
        self.assertEqual(opts["ftp_url"], "from-cli:21")
        self.assertEqual(opts["remote_directory"], "www")

    def test_global_config_is_lowest_precedence(self):
        self._write("defaults:\n  ftp_user: globaluser\n  ftp_password: pw\n",
                    name="config.yaml", where=self.root / "xdg" / "git2ftp")
        p = self._write("defaults:\n  ftp_user: projectuser\n")
        opts = resolve_options({}, p)
        self.assertEqual(opts["ftp_user"], "projectuser")
        self.assertEqual(opts["ftp_password"], "pw")

    def test_explicit_missing_config_file(self):
        with self.assertRaises(ConfigError):
            resolve_options({}, self.root / "nope.yaml")


if __name__ == "__main__":
    unittest.main()
