"""GUI-agnostic outline model, traversal and merge engine."""
