"""Provisioning toolkit for Gather.Town guest lists."""

__version__ = "1.0.0"
