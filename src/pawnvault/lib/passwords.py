"""Random secret generation for new entries."""
from __future__ import annotations
import secrets, string
from pawnvault.config.settings import GENERATED_MIN_LENGTH, GENERATED_MAX_LENGTH

ALPHABET = string.ascii_letters + string.digits + string.punctuation


def _has_all_classes(pw: str) -> bool:
	return (any(c.islower() for c in pw) and any(c.isupper() for c in pw)
		and any(c.isdigit() for c in pw) and any(c in string.punctuation for c in pw))


def generate_password(length: int | None = None) -> str:
	"""Return a random secret mixing lower, upper, digits and punctuation."""
	if length is None:
		length = GENERATED_MIN_LENGTH + secrets.randbelow(GENERATED_MAX_LENGTH - GENERATED_MIN_LENGTH)
	if length < 4:
		raise ValueError('length must be at least 4')
	pw = ''.join(secrets.choice(ALPHABET) for _ in range(length))
	while not _has_all_classes(pw):
		pw = ''.join(secrets.choice(ALPHABET) for _ in range(length))
	return pw
