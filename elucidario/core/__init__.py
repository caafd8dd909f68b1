"""Ambient concerns shared by every layer: settings, errors, auth schemas."""
