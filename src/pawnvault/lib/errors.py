"""Error kinds raised by the vault engine.

The set is flat and closed: every failure the engine reports is one of
the classes below, or a plain :class:`OSError` for filesystem trouble.
:func:`describe` is the single place where an error is turned into a
user-facing message.
"""
from __future__ import annotations


class VaultError(Exception):
	"""Base class for all engine errors."""


# --- validation ---

class ValidationError(VaultError): ...

class EmptyNameError(ValidationError):
	def __init__(self):
		super().__init__('Vault name cannot be empty')

class InvalidNameError(ValidationError):
	def __init__(self, name: str):
		self.name = name
		super().__init__(f"Invalid vault name: '{name}'")

class MasterKeyTooShortError(ValidationError):
	def __init__(self, min_length: int):
		self.min_length = min_length
		super().__init__(f'Master key must be at least {min_length} characters long')

class MasterKeyWhitespaceError(ValidationError):
	def __init__(self):
		super().__init__('Master key should not start or end with whitespace')

class ConfirmKeyMismatchError(ValidationError):
	def __init__(self):
		super().__init__('Confirm master key does not match')

class NewKeySameAsOldError(ValidationError):
	def __init__(self):
		super().__init__('New master key is the same as the current master key')


# --- existence ---

class VaultExistsError(VaultError):
	def __init__(self, name: str):
		self.name = name
		super().__init__(f"Vault '{name}' already exists")

class VaultNotFoundError(VaultError):
	def __init__(self, name: str):
		self.name = name
		super().__init__(f"Vault '{name}' does not exist")

class RenameTargetExistsError(VaultError):
	def __init__(self, name: str):
		self.name = name
		super().__init__(f"Cannot rename to '{name}': vault already exists")


# --- crypto ---

class AuthenticationError(VaultError):
	"""Wrong key or damaged ciphertext. The two are deliberately indistinguishable."""
	def __init__(self):
		super().__init__('Authentication failed')


# --- metadata / entries ---

class MetadataUnreadableError(VaultError):
	"""Metadata file exists but cannot be parsed. Recovered locally."""

class EntryError(VaultError): ...

class EntryDecodeError(EntryError):
	"""Serialized entry store is malformed."""


INCORRECT_KEY_MESSAGE = 'Incorrect master key'
STORAGE_ERROR_MESSAGE = 'Unexpected storage error'
UNEXPECTED_ERROR_MESSAGE = 'Unexpected error'


def describe(exc: BaseException) -> str:
	"""Map an exception to a stable message that leaks no internal detail."""
	if isinstance(exc, AuthenticationError):
		return INCORRECT_KEY_MESSAGE
	if isinstance(exc, (ValidationError, VaultExistsError, VaultNotFoundError, RenameTargetExistsError)):
		return str(exc)
	if isinstance(exc, OSError):
		return STORAGE_ERROR_MESSAGE
	return UNEXPECTED_ERROR_MESSAGE
