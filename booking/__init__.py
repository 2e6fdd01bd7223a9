"""Booking backend: verifies a calendar slot is free and books it on Google Calendar."""
