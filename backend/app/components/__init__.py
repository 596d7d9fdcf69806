"""Core Business Components.

This package contains independent business modules:
- workspace: workspace aggregate, goal tree, access policy, attachments
"""
