"""
CLI command modules, registered on the group in ``repo_sync.main``.
"""
