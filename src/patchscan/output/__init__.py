"""Renderers for listings and event dumps."""
