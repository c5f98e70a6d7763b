"""Authenticated encryption keyed by a passphrase.

Sealed layout::

	[salt][iv][ciphertext][tag]

The salt feeds PBKDF2-HMAC-SHA256; the derived key drives AES-256-GCM.
Both salt and IV are fresh for every seal, so sealing the same plaintext
twice never yields the same bytes.
"""
from __future__ import annotations
import io, secrets
from typing import BinaryIO
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend
from pawnvault.config.settings import (
	DEFAULT_ITERATIONS, SALT_LENGTH, KEY_LENGTH, IV_LENGTH, AUTH_TAG_LENGTH
)
from .errors import AuthenticationError

HEADER_LENGTH = SALT_LENGTH + IV_LENGTH


class VaultCipher:
	"""Stateless seal/open over byte streams for one master key."""

	def __init__(self, masterkey: str, iterations: int = DEFAULT_ITERATIONS):
		self._masterkey = masterkey.encode('utf-8')
		self._iterations = iterations
		self._backend = default_backend()

	def __repr__(self) -> str:
		return f'{type(self).__name__}(iterations={self._iterations})'

	def _derive_key(self, salt: bytes) -> bytes:
		kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=salt, iterations=self._iterations, backend=self._backend)
		return kdf.derive(self._masterkey)

	def seal(self, data: bytes, sink: BinaryIO) -> None:
		salt = secrets.token_bytes(SALT_LENGTH)
		iv = secrets.token_bytes(IV_LENGTH)
		cipher = Cipher(algorithms.AES(self._derive_key(salt)), modes.GCM(iv), backend=self._backend)
		enc = cipher.encryptor()
		ct = enc.update(data) + enc.finalize()
		sink.write(salt + iv + ct + enc.tag)

	def open(self, source: BinaryIO) -> bytes:
		"""Read and authenticate a sealed blob.

		Raises AuthenticationError for a wrong key, a truncated blob or any
		tampering; callers cannot tell which.
		"""
		blob = source.read()
		if len(blob) < HEADER_LENGTH + AUTH_TAG_LENGTH:
			raise AuthenticationError()
		salt = blob[:SALT_LENGTH]; iv = blob[SALT_LENGTH:HEADER_LENGTH]
		ct = blob[HEADER_LENGTH:-AUTH_TAG_LENGTH]; tag = blob[-AUTH_TAG_LENGTH:]
		cipher = Cipher(algorithms.AES(self._derive_key(salt)), modes.GCM(iv, tag), backend=self._backend)
		dec = cipher.decryptor()
		try:
			return dec.update(ct) + dec.finalize()
		except InvalidTag:
			raise AuthenticationError() from None

	def seal_bytes(self, data: bytes) -> bytes:
		buf = io.BytesIO()
		self.seal(data, buf)
		return buf.getvalue()

	def open_bytes(self, blob: bytes) -> bytes:
		return self.open(io.BytesIO(blob))
