"""Inbound surfaces of claimsync."""
