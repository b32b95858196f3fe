"""LLM provider adapters.

OpenAILLMProvider implements ILLMProvider (src/interfaces/llm_provider.py)
against any OpenAI-compatible chat endpoint: LM Studio and Ollama locally,
OpenRouter or OpenAI when hosted.  main.py builds it from settings and the
AnswerService uses it to turn retrieved knowledge into an answer.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
