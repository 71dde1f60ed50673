"""
Package installation steps for the TribeNest proxy setup.
"""
