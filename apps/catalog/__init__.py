"""Catalog app package.

Destinations grouped into macro areas (the public mega menu), plus the
minimal tour, cruise and departure records that quote requests point to.
"""
