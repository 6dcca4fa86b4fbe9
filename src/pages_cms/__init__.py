"""Branch and working-copy reconciliation for a Git-backed CMS."""

__version__ = "0.1.0"
