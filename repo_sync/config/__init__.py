"""
Configuration — YAML repository list and runtime settings.
"""
