"""Plaintext sidecar record kept next to each encrypted vault."""
from __future__ import annotations
import json, logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
from .errors import MetadataUnreadableError
from .utils import atomic_write_bytes, local_now, remove_if_exists

log = logging.getLogger(__name__)


@dataclass
class VaultMetadata:
	file_path: Path
	created_at: datetime
	last_accessed: datetime

	@classmethod
	def load(cls, path: Path) -> 'VaultMetadata':
		"""Parse an existing metadata file.

		Raises MetadataUnreadableError when the file cannot be decoded and
		FileNotFoundError when it is absent.
		"""
		raw = path.read_bytes()
		try:
			doc = json.loads(raw.decode('utf-8'))
			created = datetime.fromisoformat(doc['created_at'])
			accessed = datetime.fromisoformat(doc['last_accessed'])
		except (ValueError, KeyError, TypeError) as e:
			raise MetadataUnreadableError(f'{path.name}: {e}') from e
		if created.tzinfo is None: created = created.astimezone()
		if accessed.tzinfo is None: accessed = accessed.astimezone()
		return cls(path, created, accessed)

	@classmethod
	def load_or_init(cls, path: Path, now: Optional[datetime] = None) -> 'VaultMetadata':
		"""Load metadata, regenerating and persisting it if missing or unreadable.

		Regeneration loses the original creation time; that is accepted.
		"""
		try:
			return cls.load(path)
		except FileNotFoundError:
			log.debug('No metadata at %s, initialising', path)
		except MetadataUnreadableError as e:
			log.warning('Regenerating unreadable metadata (%s)', e)
		now = now or local_now()
		meta = cls(path, now, now)
		meta.save()
		return meta

	def to_dict(self) -> Dict[str, Any]:
		return {'created_at': self.created_at.isoformat(), 'last_accessed': self.last_accessed.isoformat()}

	def save(self) -> None:
		atomic_write_bytes(self.file_path, json.dumps(self.to_dict(), indent=2).encode('utf-8'))

	def touch(self, now: Optional[datetime] = None) -> None:
		self.last_accessed = now or local_now()
		self.save()

	def delete_file(self) -> None:
		remove_if_exists(self.file_path)
