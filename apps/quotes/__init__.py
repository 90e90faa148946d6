"""Quotes app package.

Quote requests opened by agencies and the negotiation that follows:
offers, participants, payments, documents and the append-only timeline.
"""
