"""Small helpers shared by services and document rendering."""
