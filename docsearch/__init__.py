"""
Documentation and code example search service
"""
