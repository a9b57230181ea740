"""
Core business logic for Friends Dictation.

This package is framework-agnostic - it doesn't import FastAPI, SQLAlchemy
or boto3. Storage and persistence are passed in through small protocols,
so the logic can be tested in isolation.
"""
