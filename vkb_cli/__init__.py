"""
VKB CLI - Command-line entrypoints for background graph jobs.

This package contains CLI scripts for:
- Computing chunk relationships for one item or the whole corpus
- Inspecting related chunks for an item
"""
