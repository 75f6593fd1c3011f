"""Read-only textual previews of documents."""
