"""Example application for convgen."""
