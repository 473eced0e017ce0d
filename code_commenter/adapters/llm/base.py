from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for text-completion providers.

	Implementations return the raw model text; recovering a JSON object from
	it is the caller's job because providers do not reliably honor
	"JSON only" instructions.
	"""

	provider: str = "abstract"

	@abstractmethod
	async def generate_text(
		self,
		prompt: str,
		*,
		temperature: float = 0.1,
		max_output_tokens: int = 2048,
		**kwargs: Any,
	) -> str:
		"""Generate a completion for a single prompt.

		Args:
			prompt: Full prompt string.
			temperature: Sampling temperature.
			max_output_tokens: Upper bound on generated tokens.
			**kwargs: Provider-specific options (e.g., top_p, top_k).

		Returns:
			str: Raw text produced by the model.

		Raises:
			QuotaAppError: If the provider rate-limited this service.
			UpstreamAppError: If the provider is unreachable or failing.
			MalformedResponseAppError: If the provider returned no text.
		"""
		...
