"""Booth 33 studio booking API."""
