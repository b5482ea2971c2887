"""Models served by each upstream provider.

Each entry is a concrete upstream model name with an optional client-facing
alias. Used for the management autocomplete list.
"""

PROVIDER_MODELS = {
    "gemini": [
        {"name": "gemini-2.5-pro"},
        {"name": "gemini-2.5-flash"},
        {"name": "gemini-2.5-flash-lite"},
        {"name": "gemini-2.0-flash", "alias": "gemini-flash-stable"},
    ],
    "claude": [
        {"name": "claude-sonnet-4-20250514", "alias": "claude-sonnet-4"},
        {"name": "claude-opus-4-20250514", "alias": "claude-opus-4"},
    ],
    "codex": [
        {"name": "gpt-5-codex"},
    ],
    "openai-compatibility": [
        {"name": "llama-3.3-70b-versatile", "alias": "llama-3.3-70b"},
    ],
}
