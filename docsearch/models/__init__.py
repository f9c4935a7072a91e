"""
Corpus records and API schemas
"""
