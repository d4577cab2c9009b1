"""
Infrastructure helpers: environment configuration and Postgres access.
"""
