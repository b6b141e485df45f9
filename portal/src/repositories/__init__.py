"""MongoDB repositories, one per collection."""
