"""
AI Playground - chat with hosted language models from one place.

Streams completions from OpenAI, Fireworks, Anthropic, Google Gemini,
Hugging Face, Cohere and Replicate through a single callback contract.
"""

__version__ = "0.1.0"
__author__ = "AI Playground Contributors"
