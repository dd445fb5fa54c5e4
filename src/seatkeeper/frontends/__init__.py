"""Frontends - user-facing entry points (CLI)."""
