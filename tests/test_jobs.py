"""Tests for job handles and the dual-shape operations."""

import pytest

from pystalk import DEFAULT_PRIORITY, CommandFailure, JobRef, operations


def stats_reply(text: str) -> bytes:
    body = text.encode("utf-8")
    return b"OK %d\r\n" % len(body) + body + b"\r\n"


@pytest.fixture
def reserved(scripted):
    """A reserved job with id 8 on a scripted connection."""
    conn, far = scripted
    far.reply(b"RESERVED 8 3\r\nabc\r\n")
    job = conn.reserve()
    far.received()
    return conn, far, job


class TestJobDelegation:
    """A job's verbs are the connection's verbs on the job id."""

    def test_delete(self, reserved):
        conn, far, job = reserved
        far.reply(b"DELETED\r\n")
        job.delete()
        assert far.received() == b"delete 8\r\n"

    def test_release_defaults(self, reserved):
        conn, far, job = reserved
        far.reply(b"RELEASED\r\n")
        job.release()
        assert far.received() == b"release 8 %d 0\r\n" % DEFAULT_PRIORITY

    def test_touch_and_kick(self, reserved):
        conn, far, job = reserved
        far.reply(b"TOUCHED\r\n", b"KICKED\r\n")
        job.touch()
        job.kick()
        assert far.received() == b"touch 8\r\nkick-job 8\r\n"

    def test_stats(self, reserved):
        conn, far, job = reserved
        far.reply(stats_reply("---\nid: 8\nstate: reserved\n"))
        assert job.stats()["state"] == "reserved"
        assert far.received() == b"stats-job 8\r\n"

    def test_bury_with_priority(self, reserved):
        conn, far, job = reserved
        far.reply(b"BURIED\r\n")
        job.bury(5)
        assert far.received() == b"bury 8 5\r\n"

    def test_bury_keeps_current_priority(self, reserved):
        conn, far, job = reserved
        far.reply(stats_reply("---\nid: 8\npri: 42\n"), b"BURIED\r\n")
        job.bury()
        assert far.received() == b"stats-job 8\r\nbury 8 42\r\n"

    def test_bury_missing_job_falls_back_to_default(self, reserved):
        conn, far, job = reserved
        far.reply(b"NOT_FOUND\r\n", b"NOT_FOUND\r\n")
        with pytest.raises(CommandFailure) as info:
            job.bury()
        assert info.value.status == "NOT_FOUND"
        assert far.received() == b"stats-job 8\r\nbury 8 %d\r\n" % DEFAULT_PRIORITY

    def test_stale_job(self, reserved):
        conn, far, job = reserved
        far.reply(b"NOT_FOUND\r\n")
        with pytest.raises(CommandFailure) as info:
            job.delete()
        assert info.value.status == "NOT_FOUND"


class TestJobRef:
    def test_connection_job(self, scripted):
        conn, far = scripted
        ref = conn.job(12)
        assert ref == JobRef(conn, 12)
        far.reply(b"BURIED\r\n")
        ref.bury()
        assert far.received() == b"bury 12 %d\r\n" % DEFAULT_PRIORITY

    def test_job_equality_ignores_owner(self, scripted):
        conn, far = scripted
        far.reply(b"FOUND 1 1\r\nx\r\n", b"FOUND 1 1\r\nx\r\n")
        assert conn.peek(1) == conn.peek(1)


class TestOperations:
    """Tests for the module-level dispatcher."""

    def test_connection_and_id(self, scripted):
        conn, far = scripted
        far.reply(b"DELETED\r\n", b"TOUCHED\r\n", b"RELEASED\r\n", b"KICKED\r\n")
        operations.delete(conn, 3)
        operations.touch(conn, 3)
        operations.release(conn, 3, priority=1, delay=2)
        operations.kick_job(conn, 3)
        assert far.received() == (
            b"delete 3\r\ntouch 3\r\nrelease 3 1 2\r\nkick-job 3\r\n"
        )

    def test_job_shape_matches_connection_shape(self, reserved):
        conn, far, job = reserved
        far.reply(b"DELETED\r\n", b"DELETED\r\n")
        operations.delete(job)
        job_bytes = far.received()
        operations.delete(conn, job.id)
        assert far.received() == job_bytes == b"delete 8\r\n"

    def test_stats_shapes(self, reserved):
        conn, far, job = reserved
        far.reply(
            stats_reply("---\ncurrent-jobs-ready: 0\n"),
            stats_reply("---\nid: 8\n"),
            stats_reply("---\nid: 8\n"),
        )
        assert operations.stats(conn) == {"current-jobs-ready": 0}
        assert operations.stats(conn, 8) == {"id": 8}
        assert operations.stats(job) == {"id": 8}
        assert far.received() == b"stats\r\nstats-job 8\r\nstats-job 8\r\n"

    def test_kick_shapes(self, reserved):
        conn, far, job = reserved
        far.reply(b"KICKED 2\r\n", b"KICKED\r\n")
        assert operations.kick(conn, 5) == 2
        assert operations.kick(job) is None
        assert far.received() == b"kick 5\r\nkick-job 8\r\n"

    def test_bury_job_reads_priority(self, reserved):
        conn, far, job = reserved
        far.reply(stats_reply("---\npri: 3\n"), b"BURIED\r\n")
        operations.bury(job)
        assert far.received() == b"stats-job 8\r\nbury 8 3\r\n"

    def test_missing_id(self, scripted):
        conn, _ = scripted
        with pytest.raises(TypeError):
            operations.delete(conn)

    def test_id_with_job(self, reserved):
        conn, far, job = reserved
        with pytest.raises(TypeError):
            operations.delete(job, 8)

    def test_wrong_target(self):
        with pytest.raises(TypeError):
            operations.touch("not a job", 1)
