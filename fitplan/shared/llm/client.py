from __future__ import annotations

from typing import Any, Dict, Optional, Type

from pydantic import BaseModel

from fitplan.shared.llm.config import LLMConfig


def _log_prompt_stats(tag: str, prompt: str) -> None:
    prompt = prompt or ""
    chars = len(prompt)
    approx_tokens = chars // 4  # ước lượng thô
    head = prompt[:200].replace("\n", "\\n")
    print(f"[LLM][{tag}] prompt_chars={chars} approx_tokens~={approx_tokens}")
    print(f"[LLM][{tag}] prompt_head={head}")


class LLMClient:
    """
    Structured-output LLM client dùng chung.
    Provider (gemini / openai) chọn theo LLMConfig; import langchain provider lazy.
    """

    def __init__(self, cfg: Optional[LLMConfig] = None) -> None:
        self.cfg = cfg or LLMConfig.from_env()

    def generate_structured(self, prompt: str, schema_model: Type[BaseModel]) -> Dict[str, Any]:
        """
        Sinh JSON theo schema_model (Pydantic BaseModel).
        Return: dict (model_dump) để caller validate lại theo contract của domain.
        """
        llm = self._chat_model()
        _log_prompt_stats(self.cfg.provider.upper(), prompt)

        # Ưu tiên json_schema nếu version hỗ trợ để structured ổn định hơn
        try:
            structured = llm.with_structured_output(schema_model, method="json_schema")
        except TypeError:
            structured = llm.with_structured_output(schema_model)

        result = structured.invoke(prompt)
        if hasattr(result, "model_dump"):
            return result.model_dump(mode="json")
        return dict(result)

    def _chat_model(self) -> Any:
        if self.cfg.provider == "gemini":
            return self._gemini_model()
        if self.cfg.provider == "openai":
            return self._openai_model()
        raise ValueError(f"Unsupported LLM_PROVIDER={self.cfg.provider}")

    def _gemini_model(self) -> Any:
        if not self.cfg.gemini_api_key:
            raise RuntimeError("Missing GEMINI_API_KEY (or GOOGLE_API_KEY)")

        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=self.cfg.gemini_model,
            temperature=self.cfg.temperature,
            max_retries=self.cfg.max_retries,
            google_api_key=self.cfg.gemini_api_key,
        )

    def _openai_model(self) -> Any:
        if not self.cfg.openai_api_key:
            raise RuntimeError("Missing OPENAI_API_KEY")

        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=self.cfg.openai_model,
            api_key=self.cfg.openai_api_key,
            temperature=self.cfg.temperature,
            max_retries=self.cfg.max_retries,
        )
