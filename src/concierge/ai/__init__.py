"""
Answer generation for Concierge.

- **answer_generator.py**: Wraps an OpenAI-compatible chat completions
  endpoint (Gemini by default) behind a single ``generate(text)`` call that
  returns a ``GenerationResult`` instead of raising. Calls are bounded by a
  timeout; a timeout counts as a failed generation.
"""
