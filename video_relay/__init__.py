"""Relay image-to-video jobs from Runway into S3-compatible storage."""
