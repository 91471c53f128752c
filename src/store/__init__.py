"""Blobstore transfer layer.

This module moves staged sources into object storage through
interchangeable stream and whole-file transports.
"""
