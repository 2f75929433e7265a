"""Helpers the assistant layer uses to consume the data layer."""
