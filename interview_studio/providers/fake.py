"""ProviderFake: scenario-based test double for the ContentProvider protocol.

Scenarios:
- happy_path: deterministic markdown with a title, summary and body
- llm_failure: every call raises RuntimeError
- empty_response: every call returns blank text

Every request is appended to ``calls`` so tests can assert on prompts.
"""

from interview_studio.providers.base import CompletionRequest, CompletionResponse, TokenUsage


class ProviderFake:
    VALID_SCENARIOS = {"happy_path", "llm_failure", "empty_response"}

    def __init__(self, scenario: str = "happy_path", *, text: str | None = None, usage: TokenUsage | None = None):
        """
        Args:
            scenario: One of VALID_SCENARIOS
            text: Overrides the generated text in the happy_path scenario
            usage: Overrides the reported token usage

        Raises:
            ValueError: If scenario is not recognized
        """
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.text = text
        self.usage = usage or TokenUsage(prompt_tokens=1200, completion_tokens=800)
        self.calls: list[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.calls.append(request)

        if self.scenario == "llm_failure":
            raise RuntimeError("AI provider unavailable: upstream returned 503.")

        if self.scenario == "empty_response":
            return CompletionResponse(text="   ", usage=TokenUsage(prompt_tokens=self.usage.prompt_tokens), model=request.model)

        return CompletionResponse(text=self.text or self._default_text(), usage=self.usage, model=request.model)

    @staticmethod
    def _default_text() -> str:
        return (
            "# Streamlined CRM for Growing Teams\n"
            "\n"
            "Summary: A CRM built for small and medium businesses that want fast onboarding.\n"
            "\n"
            "## Key points\n"
            "- Set up in under a day\n"
            "- Pipeline views tailored to SMB sales cycles\n"
            "\n"
            "## Strengths\n"
            "Simple pricing and responsive support.\n"
            "\n"
            "## Target customer\n"
            "Sales teams of 5-50 people.\n"
            "\n"
            "## Pricing\n"
            "Per-seat monthly plans.\n"
        )
