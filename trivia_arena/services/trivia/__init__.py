"""Trivia domain services: room ownership and answer scoring.

This package contains the domain logic imported by the HTTP routes,
keeping request parsing separated from the rules about who may touch
which room and how answers are scored.
"""
