"""
Prefect flows for Hansard Digest.
"""
