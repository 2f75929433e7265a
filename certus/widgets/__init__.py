"""Widget registry, compatibility selector and prop resolver."""
