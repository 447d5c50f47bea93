"""Oyster card fare system."""
