"""Matching, discovery, conversation and verification services."""
