"""Core engine: topics, conditions, the context stack, dispatch and serialization."""
