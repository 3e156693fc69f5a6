"""OpenAI-compatible chat completions client for clinical notes."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from therapy_sessions.services.soap_notes import NotesClient


@dataclass
class OpenAINotesClient(NotesClient):
    """Notes client backed by an OpenAI-compatible chat completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "OpenAINotesClient":
        """Create a notes client; base_url selects DeepSeek or OpenAI."""
        return cls(client=AsyncOpenAI(api_key=api_key, base_url=base_url))

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Call the chat completions endpoint and return the message text."""
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            top_p=0.9,
        )
        if not response.choices:
            raise RuntimeError("Notes model returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise RuntimeError("Notes model returned an empty response")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
