"""Booking selection, contracts and request construction."""
