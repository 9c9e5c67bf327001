"""Realtime delivery over Socket.IO rooms."""
