"""Rolegate command line interface."""
