"""
Provider implementations for each collaborator interface.
"""
