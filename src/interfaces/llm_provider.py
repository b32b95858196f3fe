"""Abstract base class for LLM service providers.

Defines the contract for the chat-completion backend that turns retrieved
knowledge into an answer.  Any OpenAI-compatible server (LM Studio,
Ollama, OpenRouter) fits behind this interface, so the answer service
never depends on a specific vendor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAILLMProvider (src/providers/llm/)
class ILLMProvider(ABC):
    """Contract for LLM completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 500,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The prompt carrying retrieved knowledge and the question.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
