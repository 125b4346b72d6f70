"""
minio-upload - S3-compatible storage provider for admin-panel file uploads.

This package contains:
- core: the upload provider contract and its S3-compatible implementation
- infrastructure: boto3 and in-memory object-storage clients
- api: FastAPI dependencies and health routes for host applications
- config: Application configuration
"""

__version__ = "0.1.0"
