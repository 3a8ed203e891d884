from .client import LLMClient
from .config import LLMConfig

__all__ = ["LLMClient", "LLMConfig"]
