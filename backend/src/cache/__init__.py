"""Read-through Redis caches in front of the durable store."""
