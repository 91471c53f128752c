"""Source classification and staging.

This module classifies source format and compression, resolves local
versus remote references and stages sources into the blobstore.
"""
