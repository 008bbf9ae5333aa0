"""
Tests package for the DropLink backend.

This package contains test suites organized by type:
- unit/: Fast tests of single components
- integration/: Tests across real storage and threads
- property/: Property-based tests using Hypothesis
"""
