"""Normalize Kubernetes manifest sets so installer runs can be diffed."""
