"""
ReelForge HTTP API
"""
