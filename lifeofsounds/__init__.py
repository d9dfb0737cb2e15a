"""HTTPS and WebSocket server for recording and browsing audio sessions, with MySQL-backed models."""

__version__ = "0.1.0"