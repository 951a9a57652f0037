"""Client for a locally hosted Ollama model server."""

from __future__ import annotations

import logging
import re

import requests

from schemachat.gui_kit.error_contract import format_actionable_error

logger = logging.getLogger("llm_client")

_SQL_BLOCK_RE = re.compile(r"```sql\n([\s\S]*?)```")
_OPEN_FENCE_RE = re.compile(r"^```sql\s*", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"```\s*$")


def _llm_error(location: str, issue: str, hint: str) -> str:
    return format_actionable_error("Local model", location, issue, hint)


def extract_sql(text: str) -> str:
    match = _SQL_BLOCK_RE.search(text or "")
    if match:
        return match.group(1).strip()
    return (text or "").strip()


def wrap_sql_markdown(sql: str) -> str:
    return f"```sql\n{sql}\n```"


def strip_sql_fence(markdown: str) -> str:
    """Plain SQL from a fenced ```sql block (used by copy and run actions)."""

    text = _OPEN_FENCE_RE.sub("", (markdown or "").strip())
    return _CLOSE_FENCE_RE.sub("", text).strip()


class OllamaClient:
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        *,
        timeout: float = 120,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_models(self) -> list[str]:
        url = f"{self.base_url}/api/tags"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error("Listing local models failed: %s", exc)
            raise ValueError(
                _llm_error(
                    "Models",
                    f"failed to list local models ({exc})",
                    f"start Ollama and make sure {self.base_url} is reachable",
                )
            ) from exc
        except ValueError as exc:
            raise ValueError(
                _llm_error("Models", "model list response is not JSON", "check the Ollama server version")
            ) from exc

        models = [str(model.get("name", "")) for model in payload.get("models", []) if model.get("name")]
        logger.info("Found %d local models", len(models))
        return models

    def generate(self, model: str, prompt: str) -> str:
        if not model:
            raise ValueError(_llm_error("Generate", "no model selected", "choose a local model"))

        url = f"{self.base_url}/api/generate"
        logger.info("Generating with model '%s' (prompt chars=%d)", model, len(prompt))
        logger.debug("Prompt:\n%s", prompt)
        try:
            response = self.session.post(
                url,
                json={"model": model, "prompt": prompt, "stream": False},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error("Model generation failed: %s", exc)
            raise ValueError(
                _llm_error(
                    "Generate",
                    f"SQL generation failed ({exc})",
                    "check that the model is pulled and Ollama is running",
                )
            ) from exc
        except ValueError as exc:
            raise ValueError(
                _llm_error("Generate", "generation response is not JSON", "check the Ollama server version")
            ) from exc

        content = str(payload.get("response", ""))
        logger.debug("Model output:\n%s", content)
        return content

    def generate_sql(self, model: str, prompt: str) -> str:
        """Generate and normalize the answer to a single fenced SQL block."""

        return wrap_sql_markdown(extract_sql(self.generate(model, prompt)))
