"""pawnvault: passphrase-protected vaults of generated secrets."""

__version__ = "0.1.0"
