"""Vision classification backends."""
from .ollama import OllamaVision, has_vision_model

__all__ = ["OllamaVision", "has_vision_model"]
