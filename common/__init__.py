"""
Shared command, system and logging helpers.
"""
