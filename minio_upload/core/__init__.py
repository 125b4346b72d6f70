"""
Core upload logic.

This module is framework-agnostic: it doesn't import FastAPI or boto3.
The provider works against the ObjectStorageClient protocol.
"""
