import os
import threading
from typing import Literal, Optional

from .config import DEFAULT_MAX_TOKENS, DEFAULT_TEMP
from .errors import EngineError
from .history import TERMINATOR, Role
from .sidecarlog import LOG

MAX_NEW_TOKENS = 2000

# The model sometimes keeps going and writes the next speaker's turn itself
STOP_SEQUENCES = (TERMINATOR.strip(),) + tuple(role.marker.strip() for role in Role)


class Generator:
    """
    Wraps a local HuggingFace causal LM pipeline with configurable bitness and temperature.
    Accepts a model directory or a single .gguf file. Automatically falls back to CPU if no GPU.
    """

    def __init__(
        self,
        model_path: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMP,
        bitness: Literal["4bit", "8bit", "16bit"] = "16bit",
    ):
        self.model_path = model_path
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.bitness = bitness
        self.tokenizer = None
        self.model = None
        self.pipeline = None
        self._thread_lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self.pipeline is not None

    @staticmethod
    def _source_kwargs(model_path: str) -> tuple:
        """Split a .gguf file path into (directory, {"gguf_file": name})."""
        if model_path.endswith(".gguf"):
            directory, filename = os.path.split(os.path.abspath(model_path))
            return directory, {"gguf_file": filename}
        return model_path, {}

    def load_model(self, model_path: Optional[str] = None):
        """Load tokenizer and model from local assets with GPU fallback to CPU."""
        model_path = model_path or self.model_path
        if not os.path.exists(model_path):
            raise EngineError(f"model asset not found: {model_path}")

        from transformers import (
            AutoTokenizer,
            AutoModelForCausalLM,
            pipeline,
            BitsAndBytesConfig,
        )
        import torch

        source, extra = self._source_kwargs(model_path)
        LOG.info("Loading model %s with %s", model_path, self.bitness)

        self.tokenizer = AutoTokenizer.from_pretrained(source, use_fast=True, **extra)

        device = "cuda" if torch.cuda.is_available() else "cpu"
        if device == "cpu":
            LOG.info("No GPU detected. Optimizing model for CPU inference.")
        else:
            LOG.info("GPU detected. Using CUDA for inference.")

        try:
            if self.bitness in ("4bit", "8bit") and device != "cpu":
                # Quantized loading needs a GPU
                bnb_config = BitsAndBytesConfig(
                    load_in_4bit=self.bitness == "4bit",
                    load_in_8bit=self.bitness == "8bit",
                )
                self.model = AutoModelForCausalLM.from_pretrained(
                    source,
                    device_map="auto",
                    quantization_config=bnb_config,
                    **extra,
                )
                LOG.info("Loaded %s quantized model", self.bitness)
            else:
                self.model = AutoModelForCausalLM.from_pretrained(
                    source,
                    device_map=None if device == "cpu" else "auto",
                    torch_dtype=torch.float16 if device == "cuda" else torch.float32,
                    **extra,
                )
                LOG.info("Loaded full precision model on %s", device)
        except (OSError, ValueError, RuntimeError) as e:
            LOG.warning(
                "Failed to load model with %s, falling back to CPU float32: %s",
                self.bitness,
                e,
            )
            device = "cpu"
            self.model = AutoModelForCausalLM.from_pretrained(
                source,
                device_map=None,
                torch_dtype=torch.float32,
                **extra,
            )

        self.pipeline = pipeline(
            "text-generation",
            model=self.model,
            tokenizer=self.tokenizer,
            framework="pt",
            device=None if device == "cuda" else -1,
        )

        if device == "cpu":
            torch.set_num_threads(max(1, torch.get_num_threads()))
            LOG.info("CPU threads available: %d", torch.get_num_threads())

        self.model_path = model_path
        LOG.info("Model pipeline ready on %s", device)

    @staticmethod
    def _cut_at_stop(text: str) -> str:
        cut = len(text)
        for stop in STOP_SEQUENCES:
            idx = text.find(stop)
            if idx != -1:
                cut = min(cut, idx)
        return text[:cut].strip()

    def generate(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """Thread-safe completion of an already rendered prompt."""
        if self.pipeline is None or self.tokenizer is None:
            raise EngineError("model not loaded")

        max_new_tokens = max(1, min(MAX_NEW_TOKENS, int(max_tokens or self.max_tokens)))
        temp = float(self.temperature)

        try:
            with self._thread_lock:
                outputs = self.pipeline(
                    prompt,
                    max_new_tokens=max_new_tokens,
                    do_sample=(temp > 0),
                    temperature=temp if temp > 0 else None,
                    return_full_text=False,
                    pad_token_id=self.tokenizer.eos_token_id,
                )
        except Exception as e:
            raise EngineError(f"unable to generate text: {e}") from e

        if not outputs:
            raise EngineError("engine returned no output")
        return self._cut_at_stop(outputs[0].get("generated_text", ""))
