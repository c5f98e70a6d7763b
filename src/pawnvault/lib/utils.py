"""Filesystem helpers shared by the metadata, vault and registry layers."""
from __future__ import annotations
import os, tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, BinaryIO, Iterator
from pawnvault.config.settings import TEMP_SUFFIX

if os.name == 'nt':
	import msvcrt

	def _lock_fd(fd: int) -> None:
		os.lseek(fd, 0, os.SEEK_SET)
		while True:
			try:
				msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
				return
			except OSError:
				# LK_LOCK gives up after ten one-second attempts
				continue

	def _unlock_fd(fd: int) -> None:
		os.lseek(fd, 0, os.SEEK_SET)
		msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
else:
	import fcntl

	def _lock_fd(fd: int) -> None:
		fcntl.flock(fd, fcntl.LOCK_EX)

	def _unlock_fd(fd: int) -> None:
		fcntl.flock(fd, fcntl.LOCK_UN)


def local_now() -> datetime:
	return datetime.now().astimezone()


def atomic_write(path: Path, writer: Callable[[BinaryIO], None]) -> None:
	"""Write through ``writer`` into a private temp file, then swap it into place.

	Temp files are named ``<file>.<random>.tmp`` and never shared between
	writers. Either the old file or the complete new one is visible at
	``path``.
	"""
	fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name + '.', suffix=TEMP_SUFFIX)
	try:
		with os.fdopen(fd, 'wb') as f:
			writer(f)
			f.flush()
			os.fsync(f.fileno())
		os.replace(tmp, path)
	except BaseException:
		Path(tmp).unlink(missing_ok=True)
		raise


def atomic_write_bytes(path: Path, data: bytes) -> None:
	atomic_write(path, lambda f: f.write(data))


def remove_if_exists(path: Path) -> bool:
	"""Delete ``path``; return False if it was already gone."""
	try:
		path.unlink()
		return True
	except FileNotFoundError:
		return False


@contextmanager
def file_lock(path: Path, keep: Callable[[], bool] = lambda: True) -> Iterator[None]:
	"""Hold an exclusive lock on ``path`` against other threads and processes.

	Each call opens its own descriptor, so two holders in one process
	exclude each other as well. When ``keep()`` is false at release the
	lock file is unlinked; a waiter that then wins the old inode notices
	and retries on a fresh file.
	"""
	while True:
		fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
		_lock_fd(fd)
		try:
			current = os.fstat(fd).st_ino == os.stat(path).st_ino
		except FileNotFoundError:
			current = False
		if current:
			break
		_unlock_fd(fd)
		os.close(fd)
	try:
		yield
	finally:
		try:
			if os.name != 'nt' and not keep():
				remove_if_exists(path)
		finally:
			_unlock_fd(fd)
			os.close(fd)
