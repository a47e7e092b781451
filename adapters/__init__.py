"""
Adapters package - External service connections.
LLM completion backends (Gemini, Groq), lenient JSON extraction and the SMTP
mail transport.
"""
