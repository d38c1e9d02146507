"""
repo-sync — Mirror repositories from source organizations into a build organization.
"""

__version__ = "0.1.0"
