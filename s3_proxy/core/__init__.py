"""
Core business logic for bucket browsing.

This package is framework-agnostic - it doesn't import FastAPI or boto3.
The bucket is reached through a protocol, so the listing and search
logic can be tested against an in-memory store.
"""
