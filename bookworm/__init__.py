"""Bookworm: book catalog service backed by a hosted relational store."""

__version__ = "1.0.0"
