"""Souq trust & reputation scoring service."""
