"""Entrypoints: composition root and CLI for floor object detection."""
