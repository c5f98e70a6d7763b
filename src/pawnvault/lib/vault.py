"""One named vault: an encrypted content file plus its metadata sidecar.

Every operation that needs plaintext runs a full cycle

	decrypt -> mutate -> encrypt -> write

and drops the decrypted store when it returns. Nothing decrypted is kept
on the ``Vault`` object between calls.
"""
from __future__ import annotations
import logging, os
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
from pawnvault.config.settings import CONTENT_EXTENSION, METADATA_EXTENSION, MIN_MASTERKEY_LENGTH
from .crypto import VaultCipher
from .entries import Entry, EntryStore
from .errors import (
	AuthenticationError, ConfirmKeyMismatchError, EmptyNameError, EntryDecodeError,
	InvalidNameError, MasterKeyTooShortError, MasterKeyWhitespaceError,
	NewKeySameAsOldError, VaultExistsError, VaultNotFoundError,
)
from .metadata import VaultMetadata
from .passwords import generate_password
from .utils import atomic_write, local_now

log = logging.getLogger(__name__)


# --- validation ---

def validate_name(name: str) -> str:
	"""Trim ``name`` and check it can be used as a vault base name."""
	name = name.strip()
	if not name:
		raise EmptyNameError()
	check_path_safe(name)
	return name


def check_path_safe(name: str) -> None:
	if not name:
		raise EmptyNameError()
	seps = {'/', os.sep, '\x00'} | ({os.altsep} if os.altsep else set())
	if name in ('.', '..') or any(s in name for s in seps):
		raise InvalidNameError(name)


def validate_masterkey(masterkey: str, confirm_masterkey: Optional[str] = None) -> None:
	if confirm_masterkey is not None and masterkey != confirm_masterkey:
		raise ConfirmKeyMismatchError()
	if masterkey.strip() != masterkey:
		raise MasterKeyWhitespaceError()
	if len(masterkey) < MIN_MASTERKEY_LENGTH:
		raise MasterKeyTooShortError(MIN_MASTERKEY_LENGTH)


def validate_new_masterkey(old_masterkey: str, new_masterkey: str, confirm_masterkey: Optional[str] = None) -> None:
	if old_masterkey == new_masterkey:
		raise NewKeySameAsOldError()
	validate_masterkey(new_masterkey, confirm_masterkey)


def vault_paths(root: Path, name: str) -> Tuple[Path, Path]:
	"""Content and metadata paths for ``name`` under ``root``."""
	check_path_safe(name)
	return root / f'{name}{CONTENT_EXTENSION}', root / f'{name}{METADATA_EXTENSION}'


class Vault:
	def __init__(self, root: Path, name: str, metadata: VaultMetadata,
			clock: Callable[[], datetime] = local_now):
		self.root = Path(root)
		self.name = name
		self.content_path, _ = vault_paths(self.root, name)
		self.metadata = metadata
		self._clock = clock

	def __repr__(self) -> str:
		return f'Vault({self.name!r}, created_at={self.metadata.created_at.isoformat()})'

	@classmethod
	def create(cls, root: Path, name: str, masterkey: str, confirm_masterkey: Optional[str] = None,
			clock: Callable[[], datetime] = local_now) -> 'Vault':
		"""Create a new, empty vault sealed under ``masterkey``.

		Validation and the existence check happen before anything is written.
		"""
		name = validate_name(name)
		validate_masterkey(masterkey, confirm_masterkey)
		content_path, meta_path = vault_paths(Path(root), name)
		if content_path.exists():
			raise VaultExistsError(name)
		now = clock()
		meta = VaultMetadata(meta_path, now, now)
		vault = cls(root, name, meta, clock)
		vault._write_store(masterkey, EntryStore.empty())
		meta.save()
		log.info('Vault created: %s', name)
		return vault

	@classmethod
	def open(cls, root: Path, name: str, clock: Callable[[], datetime] = local_now) -> 'Vault':
		"""Resolve an existing vault; metadata is regenerated if missing or unreadable."""
		content_path, meta_path = vault_paths(Path(root), name)
		if not content_path.is_file():
			raise VaultNotFoundError(name)
		meta = VaultMetadata.load_or_init(meta_path, clock())
		return cls(root, name, meta, clock)

	@property
	def metadata_path(self) -> Path:
		return self.metadata.file_path

	def to_dict(self) -> Dict:
		return {'name': self.name, **self.metadata.to_dict()}

	# --- crypto cycle ---

	def decrypt(self, masterkey: str) -> EntryStore:
		with open(self.content_path, 'rb') as f:
			raw = VaultCipher(masterkey).open(f)
		try:
			return EntryStore.decode(raw)
		except EntryDecodeError:
			# authenticated but undecodable; treat like any other damage
			log.debug('Vault %s decrypted to a malformed entry store', self.name)
			raise AuthenticationError() from None

	def _write_store(self, masterkey: str, store: EntryStore) -> None:
		cipher = VaultCipher(masterkey)
		payload = store.encode()
		atomic_write(self.content_path, lambda f: cipher.seal(payload, f))
		log.info('Vault saved: %s (%d entries)', self.name, len(store))

	def _cycle(self, masterkey: str, mutate: Optional[Callable[[EntryStore], None]] = None) -> List[Entry]:
		store = self.decrypt(masterkey)
		if mutate is not None:
			mutate(store)
			self._write_store(masterkey, store)
		self.metadata.touch(self._clock())
		return list(store.entries)

	# --- entry operations; each returns the full entry list ---

	def list_entries(self, masterkey: str) -> List[Entry]:
		return self._cycle(masterkey)

	def add_entry(self, masterkey: str, secret: Optional[str] = None, notes: str = '',
			generator: Callable[[], str] = generate_password) -> List[Entry]:
		return self._cycle(masterkey, lambda s: s.add_entry(notes, secret, generator))

	def update_entry(self, masterkey: str, entry_id: int, secret: str, notes: str) -> List[Entry]:
		return self._cycle(masterkey, lambda s: s.update_entry(entry_id, secret, notes))

	def delete_entry(self, masterkey: str, entry_id: int) -> List[Entry]:
		return self._cycle(masterkey, lambda s: s.delete_entry(entry_id))

	# --- lifecycle ---

	def update_masterkey(self, old_masterkey: str, new_masterkey: str, confirm_masterkey: Optional[str] = None) -> None:
		"""Re-seal the same entries under a new key. ``created_at`` is kept."""
		validate_new_masterkey(old_masterkey, new_masterkey, confirm_masterkey)
		store = self.decrypt(old_masterkey)
		self._write_store(new_masterkey, store)
		self.metadata.touch(self._clock())
		log.info('Master key updated for vault %s', self.name)

