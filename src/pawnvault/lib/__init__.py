"""Engine layer: cipher, entry store, metadata, vaults and the registry."""
