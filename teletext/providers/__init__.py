# FILE: teletext/providers/__init__.py
"""
Generation providers (Gemini, Ollama)
"""
