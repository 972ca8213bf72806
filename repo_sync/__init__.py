"""
repo-sync — Keep private mirrors in step with their public upstreams.

Classifies every branch and tag of a local mirror against the private
destination and only pushes when doing so cannot discard history.
"""

__version__ = "0.3.0"
