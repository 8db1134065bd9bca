"""
Language-model integration.

- **prompt_builder.py**: Builds the chat-completion message lists for server
  evaluation and reform planning.
- **llm_engine.py**: Thin ``AsyncOpenAI`` client wrapper that sends those
  messages to any OpenAI-compatible endpoint and turns reform completions into
  validated change-sets.
"""
