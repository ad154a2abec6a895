"""Suggest free TCP ports that avoid known services and ports already in use."""

__version__ = "1.6.9"