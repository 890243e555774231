"""Feature slices: cleaning, monitoring, state, and backup."""
