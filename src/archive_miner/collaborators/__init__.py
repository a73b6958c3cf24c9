"""External collaborators: text cleanup, publishing and result storage.

Sub-modules:
- ``base``      — collaborator protocols and null implementations
- ``cleanup``   — Groq chat-completion cleanup
- ``publisher`` — WordPress intake publisher
- ``sink``      — CSV result sink
"""
