"""Progress estimation core: cache, source scanning and the engine."""
