"""Sapph matching service: discovery, likes/matches and chat over MongoDB."""
