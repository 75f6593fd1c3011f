"""GUI-agnostic engine: document model, edits, history and XML codecs."""
