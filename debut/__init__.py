"""Debut: show posts on an appearance date distinct from their publish date."""
