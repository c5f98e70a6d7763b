"""Entry store: the ordered list of secrets held inside one vault.

The whole store is the unit of encryption. It is serialized with a fixed,
versionless little-endian layout::

	u32 count
	count * (i32 id, u32 len, secret utf-8, u32 len, notes utf-8)

Ids are ``max(existing) + 1`` (1 for an empty store). They are unique
among the entries present at any instant; deleting the highest id and
adding again hands out the same number.
"""
from __future__ import annotations
import struct
from dataclasses import dataclass, asdict, field
from typing import Callable, Dict, List, Optional
from .errors import EntryError, EntryDecodeError
from .passwords import generate_password

_U32 = struct.Struct('<I')
_I32 = struct.Struct('<i')
MAX_ID = 2**31 - 1


@dataclass
class Entry:
	id: int
	secret: str
	notes: str

	def to_dict(self) -> Dict:
		return asdict(self)


@dataclass
class EntryStore:
	entries: List[Entry] = field(default_factory=list)

	@classmethod
	def empty(cls) -> 'EntryStore':
		return cls()

	def __len__(self) -> int:
		return len(self.entries)

	def next_id(self) -> int:
		if not self.entries:
			return 1
		nid = max(e.id for e in self.entries) + 1
		if nid > MAX_ID:
			raise EntryError('Entry id space exhausted')
		return nid

	def find(self, entry_id: int) -> Optional[Entry]:
		for e in self.entries:
			if e.id == entry_id:
				return e
		return None

	def add_entry(self, notes: str, secret: str | None = None,
			generator: Callable[[], str] = generate_password) -> Entry:
		"""Append a new entry; the secret is generated when not supplied."""
		entry = Entry(self.next_id(), secret if secret is not None else generator(), notes)
		self.entries.append(entry)
		return entry

	def update_entry(self, entry_id: int, secret: str, notes: str) -> None:
		"""Replace an entry's fields in place. Unknown ids are ignored."""
		entry = self.find(entry_id)
		if entry is not None:
			entry.secret = secret
			entry.notes = notes

	def delete_entry(self, entry_id: int) -> None:
		"""Remove the first entry with ``entry_id``. Unknown ids are ignored."""
		for i, e in enumerate(self.entries):
			if e.id == entry_id:
				del self.entries[i]
				return

	def to_dicts(self) -> List[Dict]:
		return [e.to_dict() for e in self.entries]

	# --- serialization ---

	def encode(self) -> bytes:
		parts = [_U32.pack(len(self.entries))]
		for e in self.entries:
			secret = e.secret.encode('utf-8'); notes = e.notes.encode('utf-8')
			parts += [_I32.pack(e.id), _U32.pack(len(secret)), secret, _U32.pack(len(notes)), notes]
		return b''.join(parts)

	@classmethod
	def decode(cls, raw: bytes) -> 'EntryStore':
		reader = _Reader(raw)
		count = reader.u32()
		entries = []
		for _ in range(count):
			entry_id = reader.i32()
			entries.append(Entry(entry_id, reader.text(), reader.text()))
		if reader.remaining():
			raise EntryDecodeError('Trailing bytes after entry store')
		return cls(entries)


class _Reader:
	def __init__(self, raw: bytes):
		self._raw = raw
		self._pos = 0

	def remaining(self) -> int:
		return len(self._raw) - self._pos

	def _take(self, n: int) -> bytes:
		if self.remaining() < n:
			raise EntryDecodeError('Entry store truncated')
		chunk = self._raw[self._pos:self._pos + n]
		self._pos += n
		return chunk

	def u32(self) -> int:
		return _U32.unpack(self._take(_U32.size))[0]

	def i32(self) -> int:
		return _I32.unpack(self._take(_I32.size))[0]

	def text(self) -> str:
		try:
			return self._take(self.u32()).decode('utf-8')
		except UnicodeDecodeError as e:
			raise EntryDecodeError(f'Invalid text in entry store: {e}') from e
