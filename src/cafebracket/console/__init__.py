"""Staff console for running café tournaments from a terminal."""
