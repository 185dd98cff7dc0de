from __future__ import annotations

from types import SimpleNamespace

import pytest

from ai_sidecar.errors import EngineError
from ai_sidecar.generator import Generator


class _FakePipeline:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.kwargs: dict = {}

    def __call__(self, prompt, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return [{"generated_text": self.text}]


def _generator(pipeline, **kwargs) -> Generator:
    gen = Generator(model_path="unused", **kwargs)
    gen.tokenizer = SimpleNamespace(eos_token_id=2)
    gen.pipeline = pipeline
    return gen


def test_generate_requires_loaded_model() -> None:
    with pytest.raises(EngineError):
        Generator(model_path="unused").generate("prompt", 10)


def test_generate_returns_only_new_text_up_to_first_stop() -> None:
    pipe = _FakePipeline(text=" Four.</s>\n<|user|>\nand 3+3?")
    gen = _generator(pipe)

    assert gen.generate("prompt", 10) == "Four."
    assert pipe.kwargs["return_full_text"] is False
    assert pipe.kwargs["pad_token_id"] == 2


def test_generate_clamps_token_budget() -> None:
    pipe = _FakePipeline(text="ok")
    gen = _generator(pipe, max_tokens=32)

    gen.generate("prompt", 10_000)
    assert pipe.kwargs["max_new_tokens"] == 2000

    gen.generate("prompt", None)
    assert pipe.kwargs["max_new_tokens"] == 32


def test_greedy_decoding_when_temperature_is_zero() -> None:
    pipe = _FakePipeline(text="ok")
    gen = _generator(pipe, temperature=0.0)

    gen.generate("prompt", 5)

    assert pipe.kwargs["do_sample"] is False
    assert pipe.kwargs["temperature"] is None


def test_pipeline_errors_become_engine_errors() -> None:
    gen = _generator(_FakePipeline(error=RuntimeError("CUDA out of memory")))

    with pytest.raises(EngineError) as excinfo:
        gen.generate("prompt", 5)

    assert "CUDA out of memory" in str(excinfo.value)


def test_load_model_rejects_missing_asset(tmp_path) -> None:
    gen = Generator(model_path=str(tmp_path / "missing.gguf"))

    with pytest.raises(EngineError):
        gen.load_model()


def test_gguf_path_is_split_into_directory_and_file(tmp_path) -> None:
    source, extra = Generator._source_kwargs(str(tmp_path / "tiny.gguf"))

    assert source == str(tmp_path)
    assert extra == {"gguf_file": "tiny.gguf"}
    assert Generator._source_kwargs("models/tiny") == ("models/tiny", {})
