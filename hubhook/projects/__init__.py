"""Configured projects: the repositories this server builds on push."""
