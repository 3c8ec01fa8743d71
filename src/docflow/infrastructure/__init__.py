"""Adapters implementing the file action request ports."""
