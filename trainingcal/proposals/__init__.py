"""Proposal ledger and approval workflow."""
