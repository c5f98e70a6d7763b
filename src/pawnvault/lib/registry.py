"""Directory-level vault management.

The registry owns one storage root and exposes every operation the
outside world may call. Calls on different vault names run in parallel;
calls on the same name are serialized by a per-name lock file under
``<root>/.locks``, which is what keeps two read-modify-write cycles from
losing each other's update. The lock is an OS file lock, so it holds
across registry instances and across processes.
"""
from __future__ import annotations
import logging, re, shutil
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional
from pawnvault.config.settings import CONTENT_EXTENSION, METADATA_EXTENSION, TEMP_SUFFIX, LOCK_DIRNAME
from .entries import Entry
from .errors import RenameTargetExistsError, VaultError, VaultNotFoundError
from .passwords import generate_password
from .utils import file_lock, local_now, remove_if_exists
from .vault import Vault, check_path_safe, validate_name, validate_new_masterkey, vault_paths

log = logging.getLogger(__name__)

# <name>.pwd.<random>.tmp / <name>.meta.<random>.tmp, as written by atomic_write
_TEMP_FILE = re.compile(
	rf'^(?P<name>.+)(?:{re.escape(CONTENT_EXTENSION)}|{re.escape(METADATA_EXTENSION)})'
	rf'\.[A-Za-z0-9_]+{re.escape(TEMP_SUFFIX)}$'
)


class NameLocks:
	"""Per-name lock files for one storage root.

	A lock file outlives its hold only while the vault it guards exists.
	"""

	def __init__(self, root: Path):
		self.root = Path(root)
		self.lock_dir = self.root / LOCK_DIRNAME

	def lock_path(self, name: str) -> Path:
		return self.lock_dir / f'{name}.lock'

	@contextmanager
	def hold(self, *names: str) -> Iterator[None]:
		for n in names:
			check_path_safe(n)
		self.lock_dir.mkdir(exist_ok=True)
		with ExitStack() as stack:
			# fixed order so two renames over the same pair cannot deadlock
			for n in sorted(set(names)):
				content = self.root / f'{n}{CONTENT_EXTENSION}'
				stack.enter_context(file_lock(self.lock_path(n), keep=content.exists))
			yield


@dataclass
class RecoveryReport:
	removed_temp_files: List[Path] = field(default_factory=list)
	removed_orphan_metadata: List[Path] = field(default_factory=list)

	@property
	def clean(self) -> bool:
		return not (self.removed_temp_files or self.removed_orphan_metadata)


def _strip(file_name: str, suffix: str) -> str:
	return file_name[:-len(suffix)]


def _usable_name(name: str) -> bool:
	try:
		check_path_safe(name)
	except VaultError:
		return False
	return True


class VaultRegistry:
	def __init__(self, root: Path, clock: Callable[[], datetime] = local_now,
			generator: Callable[[], str] = generate_password):
		self.root = Path(root)
		self._clock = clock
		self._generator = generator
		self._locks = NameLocks(self.root)

	def __repr__(self) -> str:
		return f'VaultRegistry({str(self.root)!r})'

	# --- vault lifecycle ---

	def create(self, name: str, masterkey: str, confirm_masterkey: Optional[str] = None) -> Vault:
		name = validate_name(name)
		with self._locks.hold(name):
			return Vault.create(self.root, name, masterkey, confirm_masterkey, clock=self._clock)

	def open(self, name: str) -> Vault:
		with self._locks.hold(name):
			return Vault.open(self.root, name, clock=self._clock)

	def list(self) -> List[Vault]:
		"""All readable vaults, newest first.

		Candidates that fail to open are skipped. Equal creation times keep
		directory listing order (sorted by file name).
		"""
		vaults = []
		for path in sorted(self.root.iterdir()):
			if not (path.name.endswith(CONTENT_EXTENSION) and path.is_file()):
				continue
			name = _strip(path.name, CONTENT_EXTENSION)
			try:
				vaults.append(self.open(name))
			except (VaultError, OSError) as e:
				log.warning('Skipping %s: %s', path.name, type(e).__name__)
		return sorted(vaults, key=lambda v: v.metadata.created_at, reverse=True)

	def delete(self, name: str) -> None:
		"""Remove both files of ``name``. Missing files are not an error."""
		content_path, meta_path = vault_paths(self.root, name)
		with self._locks.hold(name):
			had_content = remove_if_exists(content_path)
			remove_if_exists(meta_path)
		log.info('Vault deleted: %s%s', name, '' if had_content else ' (was already absent)')

	def rename(self, name: str, new_name: str) -> Vault:
		"""Move both files of ``name`` to ``new_name``.

		Content moves first, then metadata. A crash in between leaves an
		orphaned metadata file under the old name, which :meth:`recover`
		removes; the renamed vault then gets fresh metadata on next open.
		"""
		new_name = validate_name(new_name)
		src_content, src_meta = vault_paths(self.root, name)
		dst_content, dst_meta = vault_paths(self.root, new_name)
		with self._locks.hold(name, new_name):
			if not src_content.is_file():
				raise VaultNotFoundError(name)
			if dst_content.exists() or dst_meta.exists():
				raise RenameTargetExistsError(new_name)
			src_content.rename(dst_content)
			if src_meta.exists():
				src_meta.rename(dst_meta)
			vault = Vault.open(self.root, new_name, clock=self._clock)
		log.info('Vault renamed: %s -> %s', name, new_name)
		return vault

	def update_masterkey(self, name: str, old_masterkey: str, new_masterkey: str,
			confirm_new_masterkey: Optional[str] = None) -> None:
		validate_new_masterkey(old_masterkey, new_masterkey, confirm_new_masterkey)
		with self._locks.hold(name):
			Vault.open(self.root, name, clock=self._clock).update_masterkey(old_masterkey, new_masterkey)

	# --- entries; each call returns the full post-operation list ---

	def list_entries(self, name: str, masterkey: str) -> List[Entry]:
		with self._locks.hold(name):
			return Vault.open(self.root, name, clock=self._clock).list_entries(masterkey)

	def add_entry(self, name: str, masterkey: str, secret: Optional[str] = None, notes: str = '') -> List[Entry]:
		with self._locks.hold(name):
			vault = Vault.open(self.root, name, clock=self._clock)
			return vault.add_entry(masterkey, secret, notes, generator=self._generator)

	def update_entry(self, name: str, masterkey: str, entry_id: int, secret: str, notes: str) -> List[Entry]:
		with self._locks.hold(name):
			return Vault.open(self.root, name, clock=self._clock).update_entry(masterkey, entry_id, secret, notes)

	def delete_entry(self, name: str, masterkey: str, entry_id: int) -> List[Entry]:
		with self._locks.hold(name):
			return Vault.open(self.root, name, clock=self._clock).delete_entry(masterkey, entry_id)

	# --- maintenance ---

	def recover(self) -> RecoveryReport:
		"""Repair what an interrupted write or rename can leave behind.

		Temp files left by an interrupted write are deleted, as are metadata
		files whose content file no longer exists. Content without metadata
		is left alone. Other files in the root are never touched. Each
		repair runs under the vault's lock, so a write in progress elsewhere
		is waited for rather than disturbed.
		"""
		report = RecoveryReport()
		for path in sorted(self.root.iterdir()):
			if not path.is_file():
				continue
			m = _TEMP_FILE.match(path.name)
			if m and _usable_name(m.group('name')):
				with self._locks.hold(m.group('name')):
					if remove_if_exists(path):
						report.removed_temp_files.append(path)
						log.warning('Removed stale temp file %s', path.name)
			elif path.name.endswith(METADATA_EXTENSION):
				name = _strip(path.name, METADATA_EXTENSION)
				if not _usable_name(name):
					continue
				with self._locks.hold(name):
					if not (self.root / f'{name}{CONTENT_EXTENSION}').exists() and remove_if_exists(path):
						report.removed_orphan_metadata.append(path)
						log.warning('Removed orphaned metadata %s', path.name)
		return report

	def backup(self, name: str, dest_dir: Path) -> Path:
		"""Copy both files of ``name`` into ``dest_dir``; returns the content copy."""
		dest_dir = Path(dest_dir)
		with self._locks.hold(name):
			vault = Vault.open(self.root, name, clock=self._clock)
			dest_dir.mkdir(parents=True, exist_ok=True)
			stamp = self._clock().strftime('%Y%m%d_%H%M%S')
			target = dest_dir / f'{name}_{stamp}{CONTENT_EXTENSION}'
			shutil.copy2(vault.content_path, target)
			shutil.copy2(vault.metadata_path, dest_dir / f'{name}_{stamp}{METADATA_EXTENSION}')
		log.info('Vault %s backed up to %s', name, target)
		return target
