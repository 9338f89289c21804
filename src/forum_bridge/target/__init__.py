"""Data model of the target discussion platform."""
