import os
import time

import pytest

from lumberjack_lib.session.file_handler import FileSessionHandler


def test_read_missing_returns_empty_bytes(tmp_path):
    h = FileSessionHandler(tmp_path / 'sessions')
    assert h.read('abc') == b''
    # reading does not create the directory
    assert not (tmp_path / 'sessions').exists()


def test_write_read_destroy(tmp_path):
    h = FileSessionHandler(tmp_path / 'sessions')
    h.write('abc', b'payload-1')
    assert h.read('abc') == b'payload-1'
    assert h.exists('abc') is True

    h.write('abc', b'payload-2')
    assert h.read('abc') == b'payload-2'
    assert (tmp_path / 'sessions' / 'abc').read_bytes() == b'payload-2'

    h.destroy('abc')
    assert h.exists('abc') is False
    assert h.read('abc') == b''
    # destroying again is a no-op
    h.destroy('abc')


def test_write_leaves_no_temp_files(tmp_path):
    h = FileSessionHandler(tmp_path)
    h.write('abc', b'x')
    assert sorted(p.name for p in tmp_path.iterdir()) == ['abc']


@pytest.mark.parametrize('bad_id', ['../etc/passwd', 'a/b', 'a\\b', '..', '', 'a.b', 'x\x00y', 'a' * 129])
def test_rejects_unsafe_ids(tmp_path, bad_id):
    h = FileSessionHandler(tmp_path)
    with pytest.raises(ValueError):
        h.read(bad_id)
    with pytest.raises(ValueError):
        h.write(bad_id, b'x')
    with pytest.raises(ValueError):
        h.destroy(bad_id)


def test_gc_removes_only_expired_files(tmp_path):
    h = FileSessionHandler(tmp_path)
    h.write('old', b'1')
    h.write('fresh', b'2')
    past = time.time() - 3600
    os.utime(tmp_path / 'old', (past, past))

    removed = h.gc(600)

    assert removed == 1
    assert h.read('old') == b''
    assert h.read('fresh') == b'2'


def test_gc_on_missing_directory(tmp_path):
    h = FileSessionHandler(tmp_path / 'nothing-here')
    assert h.gc(60) == 0


def test_gc_skips_directories(tmp_path):
    h = FileSessionHandler(tmp_path)
    (tmp_path / 'subdir').mkdir()
    past = time.time() - 3600
    os.utime(tmp_path / 'subdir', (past, past))
    assert h.gc(60) == 0
    assert (tmp_path / 'subdir').is_dir()


def test_lock_wraps_read_modify_write(tmp_path):
    h = FileSessionHandler(tmp_path)
    with h.lock('abc'):
        h.write('abc', h.read('abc') + b'x')
    with h.lock('abc'):
        h.write('abc', h.read('abc') + b'y')
    assert h.read('abc') == b'xy'
    assert (tmp_path / 'abc.lock').exists()
    # a lock whose session still exists is kept and not counted
    past = time.time() - 3600
    os.utime(tmp_path / 'abc.lock', (past, past))
    assert h.gc(60) == 0
    assert (tmp_path / 'abc.lock').exists()


def test_gc_removes_stale_lock_without_session(tmp_path):
    h = FileSessionHandler(tmp_path)
    with h.lock('abc'):
        h.write('abc', b'x')
    past = time.time() - 3600
    os.utime(tmp_path / 'abc', (past, past))
    os.utime(tmp_path / 'abc.lock', (past, past))

    assert h.gc(60) == 1
    assert not (tmp_path / 'abc').exists()
    assert not (tmp_path / 'abc.lock').exists()


def test_gc_keeps_recent_lock_without_session(tmp_path):
    h = FileSessionHandler(tmp_path)
    with h.lock('abc'):
        pass
    assert h.gc(60) == 0
    assert (tmp_path / 'abc.lock').exists()


def test_gc_keeps_lock_that_is_held(tmp_path):
    pytest.importorskip('fcntl')
    h = FileSessionHandler(tmp_path)
    with h.lock('abc'):
        past = time.time() - 3600
        os.utime(tmp_path / 'abc.lock', (past, past))
        h.gc(60)
        assert (tmp_path / 'abc.lock').exists()


def test_lock_refreshes_lock_file_mtime(tmp_path):
    h = FileSessionHandler(tmp_path)
    (tmp_path / 'abc.lock').touch()
    past = time.time() - 3600
    os.utime(tmp_path / 'abc.lock', (past, past))
    with h.lock('abc'):
        assert (tmp_path / 'abc.lock').stat().st_mtime > past + 60
