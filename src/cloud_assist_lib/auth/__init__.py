"""Authentication for calls to the Gemini Cloud Assist API."""

from cloud_assist_lib.auth.credentials import CredentialsProvider

__all__ = [
    "CredentialsProvider",
]
