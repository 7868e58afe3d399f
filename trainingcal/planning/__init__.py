"""Batch planning over generator output."""
