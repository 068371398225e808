"""Infrastructure layer: filesystem, git, and the versioned file store."""
