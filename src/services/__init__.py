"""Session resolution and its backing stores."""
