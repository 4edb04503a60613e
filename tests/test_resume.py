"""
Tests for the remote .git2ftp marker (ResumePointStore).
"""
import unittest

from fakes import RecordingTransport
from git2ftp.exceptions import ResumeNotFound, TransportError
from git2ftp.state.resume import ResumePointStore, marker_path


class TestMarkerPath(unittest.TestCase):

    def test_inside_remote_root(self):
        self.assertEqual(marker_path("web/"), "web/.git2ftp")

    def test_without_trailing_slash(self):
        self.assertEqual(marker_path("/srv/www"), "/srv/www/.git2ftp")

    def test_empty_root(self):
        self.assertEqual(marker_path(""), ".git2ftp")


class TestResumePointStore(unittest.TestCase):

    def test_read_strips_whitespace(self):
        transport = RecordingTransport(files={"web/.git2ftp": b"  abc123\n"})
        self.assertEqual(ResumePointStore(transport).read("web/"), "abc123")

    def test_missing_marker_raises_resume_not_found(self):
        """Absence is reported distinctly, not as a generic transport error."""
        with self.assertRaises(ResumeNotFound) as ctx:
            ResumePointStore(RecordingTransport()).read("web/")
        self.assertIn("--from-sha", str(ctx.exception))

    def test_empty_marker_raises_resume_not_found(self):
        transport = RecordingTransport(files={"web/.git2ftp": b"\n"})
        with self.assertRaises(ResumeNotFound):
            ResumePointStore(transport).read("web/")

    def test_undecodable_marker_raises_resume_not_found(self):
        """A corrupt marker is reported, never rewritten into another commit id."""
        transport = RecordingTransport(files={"web/.git2ftp": b"abc\xff123\n"})
        with self.assertRaises(ResumeNotFound) as ctx:
            ResumePointStore(transport).read("web/")
        self.assertIn("not a valid commit id", str(ctx.exception))

    def test_other_transport_error_propagates(self):
        transport = RecordingTransport(failures={
            ("retrieve", "web/.git2ftp"): [TransportError("RETR web/.git2ftp: 421", 421)],
        })
        with self.assertRaises(TransportError) as ctx:
            ResumePointStore(transport).read("web/")
        self.assertNotIsInstance(ctx.exception, ResumeNotFound)
        self.assertEqual(ctx.exception.code, 421)

    def test_write_overwrites_marker(self):
        transport = RecordingTransport(files={"web/.git2ftp": b"old"})
        ResumePointStore(transport).write("web/", "def456")
        self.assertEqual(transport.files["web/.git2ftp"], b"def456")

    def test_write_failure_propagates(self):
        transport = RecordingTransport(failures={
            ("store", "web/.git2ftp"): [TransportError("STOR web/.git2ftp: 552", 552)],
        })
        with self.assertRaises(TransportError):
            ResumePointStore(transport).write("web/", "def456")

    def test_round_trip(self):
        transport = RecordingTransport()
        store = ResumePointStore(transport)
        store.write("", "cafe01")
        self.assertEqual(store.read(""), "cafe01")


if __name__ == "__main__":
    unittest.main()
