"""Printable candidate documents: layout planning, images and section templates."""
