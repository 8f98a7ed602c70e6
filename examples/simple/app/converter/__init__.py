"""Conversions between handler requests and domain models."""
