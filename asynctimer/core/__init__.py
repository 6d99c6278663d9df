"""Building blocks shared by the timer primitives."""
