"""Transport bindings: stdio (single session) and HTTP (multi-session)."""
