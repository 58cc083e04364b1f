"""Domain models and entities.

Why:
- Pure, strict data structures (Pydantic v2) and the exceptions the core raises.
- The domain knows nothing about HTTP, the CLI or Telegram: only the problem's concepts.
"""
