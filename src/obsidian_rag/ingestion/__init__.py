"""Note parsing and chunking."""
