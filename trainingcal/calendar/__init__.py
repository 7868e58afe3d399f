"""Calendar policy layer: primitives, guards, conflict and spacing checks."""
