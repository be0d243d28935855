"""Integration of generated pages into the host application (manifest, docs)."""
