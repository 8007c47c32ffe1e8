from __future__ import annotations

import os

from langchain_core.language_models import BaseChatModel
from rich.console import Console
from tenacity import retry, stop_after_attempt, wait_exponential

from casefolio.config import DEFAULT_OLLAMA_MODEL, DEFAULT_OPENAI_MODEL

console = Console()


class DraftError(Exception):
    pass


def get_llm(provider: str | None = None) -> BaseChatModel:
    provider = provider or os.environ.get("CASEFOLIO_LLM_PROVIDER", "ollama")

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "OPENAI_API_KEY env var required when using openai provider"
            )
        model_name = os.environ.get("CASEFOLIO_OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
        return ChatOpenAI(model=model_name, temperature=0)

    if provider == "ollama":
        from langchain_ollama import ChatOllama

        model_name = os.environ.get("CASEFOLIO_OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL)
        base_url = os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
        return ChatOllama(model=model_name, base_url=base_url, temperature=0)

    raise ValueError(f"Unknown LLM provider: {provider}")


def _get_max_retries() -> int:
    return int(os.environ.get("CASEFOLIO_MAX_RETRIES", "3"))


def _retry_log(step_name: str):
    def _log(retry_state):
        attempt = retry_state.attempt_number
        max_retries = _get_max_retries()
        exc = retry_state.outcome.exception()
        console.print(
            f"[yellow]  {step_name} failed (attempt {attempt}/{max_retries}): "
            f"{type(exc).__name__}: {exc}[/yellow]"
        )
        console.print("[yellow]  Retrying...[/yellow]")
    return _log


def invoke_with_retry(invocable, messages, step_name: str = "LLM call"):
    max_retries = _get_max_retries()

    @retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
        before_sleep=_retry_log(step_name),
    )
    def _call():
        result = invocable.invoke(messages)
        if result is None:
            raise DraftError(f"{step_name} returned no structured output")
        return result

    try:
        return _call()
    except Exception as exc:
        console.print(
            f"[bold red]{step_name} failed after {max_retries} "
            f"attempts: {type(exc).__name__}: {exc}[/bold red]"
        )
        raise DraftError(
            f"{step_name} failed after {max_retries} attempts: "
            f"{type(exc).__name__}: {exc}"
        ) from exc
