"""Test fixtures for the file store.

This package provides reusable factories and pytest fixtures:
- clock: Deterministic time sources
- store: Stores, sinks and pre-built trees
"""
