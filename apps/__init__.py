"""Django apps of the van rental backend."""
