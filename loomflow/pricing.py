"""Static model catalogue with per-token pricing."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ModelPricingEntry(BaseModel):
    """Pricing for one model in USD per 1M tokens."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    context_length: int
    prompt_price: float
    completion_price: float
    provider: Optional[str] = None


def _entry(
    model_id: str,
    name: str,
    description: str,
    context_length: int,
    prompt_price: float,
    completion_price: float,
    provider: str,
) -> ModelPricingEntry:
    return ModelPricingEntry(
        id=model_id,
        name=name,
        description=description,
        context_length=context_length,
        prompt_price=prompt_price,
        completion_price=completion_price,
        provider=provider,
    )


MODELS: Dict[str, ModelPricingEntry] = {
    entry.id: entry
    for entry in (
        _entry(
            "openai/gpt-4-turbo",
            "GPT-4 Turbo",
            "Most capable GPT-4 model, 128k context",
            128000,
            10.0,
            30.0,
            "OpenAI",
        ),
        _entry(
            "openai/gpt-4",
            "GPT-4",
            "Previous generation GPT-4, 8k context",
            8192,
            30.0,
            60.0,
            "OpenAI",
        ),
        _entry(
            "openai/gpt-3.5-turbo",
            "GPT-3.5 Turbo",
            "Fast and efficient, 16k context",
            16384,
            0.5,
            1.5,
            "OpenAI",
        ),
        _entry(
            "anthropic/claude-3-opus",
            "Claude 3 Opus",
            "Most capable Claude model, 200k context",
            200000,
            15.0,
            75.0,
            "Anthropic",
        ),
        _entry(
            "anthropic/claude-3-sonnet",
            "Claude 3 Sonnet",
            "Balanced performance and speed, 200k context",
            200000,
            3.0,
            15.0,
            "Anthropic",
        ),
        _entry(
            "anthropic/claude-3-haiku",
            "Claude 3 Haiku",
            "Fastest Claude model, 200k context",
            200000,
            0.25,
            1.25,
            "Anthropic",
        ),
        _entry(
            "google/gemini-pro",
            "Gemini Pro",
            "Google's multimodal model, 32k context",
            32760,
            0.5,
            1.5,
            "Google",
        ),
        _entry(
            "meta-llama/llama-3-70b-instruct",
            "Llama 3 70B",
            "Open-weights model from Meta, 8k context",
            8192,
            0.59,
            0.79,
            "Meta",
        ),
        _entry(
            "mistralai/mixtral-8x7b-instruct",
            "Mixtral 8x7B",
            "Mixture of experts model, 32k context",
            32768,
            0.24,
            0.24,
            "Mistral AI",
        ),
    )
}


def get_model(model_id: str) -> Optional[ModelPricingEntry]:
    return MODELS.get(model_id)


def get_all_models() -> List[ModelPricingEntry]:
    return list(MODELS.values())


def get_models_by_provider(provider: str) -> List[ModelPricingEntry]:
    return [m for m in MODELS.values() if m.provider == provider]


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimate the USD cost of a call. Unknown models cost nothing."""

    entry = get_model(model)
    if entry is None:
        return 0.0
    return (
        (prompt_tokens / 1_000_000) * entry.prompt_price
        + (completion_tokens / 1_000_000) * entry.completion_price
    )
