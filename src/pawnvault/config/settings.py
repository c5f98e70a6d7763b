"""Project configuration settings.

Constants shared by the engine and the CLI. Nothing here touches the
filesystem at import time; the storage root is resolved on demand.
"""

from pathlib import Path
import os

# Security / crypto
DEFAULT_ITERATIONS = 100_000
SALT_LENGTH = 32
KEY_LENGTH = 32  # AES-256
IV_LENGTH = 16
AUTH_TAG_LENGTH = 16  # GCM tag length

# Vault files
CONTENT_EXTENSION = ".pwd"
METADATA_EXTENSION = ".meta"
TEMP_SUFFIX = ".tmp"
MIN_MASTERKEY_LENGTH = 12

# Generated secrets (upper bound exclusive)
GENERATED_MIN_LENGTH = 12
GENERATED_MAX_LENGTH = 20

# Storage root
STORAGE_ENV_VAR = "PAWN_VAULT_DIR"
DEFAULT_STORAGE_DIR = "vault_data"
BACKUP_DIRNAME = "backups"
LOCK_DIRNAME = ".locks"

# Logging
LOG_LEVEL = os.environ.get("PAWN_LOG_LEVEL", "WARNING")


def default_storage_root() -> Path:
	"""Storage root used when the caller does not supply one."""
	return Path(os.environ.get(STORAGE_ENV_VAR, DEFAULT_STORAGE_DIR))


__all__ = [
	'DEFAULT_ITERATIONS','SALT_LENGTH','KEY_LENGTH','IV_LENGTH','AUTH_TAG_LENGTH',
	'CONTENT_EXTENSION','METADATA_EXTENSION','TEMP_SUFFIX','MIN_MASTERKEY_LENGTH',
	'GENERATED_MIN_LENGTH','GENERATED_MAX_LENGTH','STORAGE_ENV_VAR','DEFAULT_STORAGE_DIR',
	'BACKUP_DIRNAME','LOCK_DIRNAME','LOG_LEVEL','default_storage_root'
]
