"""Uptime monitor for home network services."""
