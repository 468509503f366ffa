"""Command line interface for gitops-py."""
