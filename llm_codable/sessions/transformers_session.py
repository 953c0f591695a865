"""
HuggingFace Transformers session with Apple Silicon MPS support.

Unlike llama.cpp, plain transformers has no built-in schema grammar, so this
session guides the model with the JSON Schema in the system message, applies
the model's chat template, and decodes the JSON value found in the reply.
Output that does not fit the target type raises DecodingFailureError.

Features:
    - Auto model loading with device optimization (MPS, CUDA, CPU)
    - Half-precision (float16) on GPU
    - Chat template support for instruction-tuned models
    - Token streaming through TextIteratorStreamer

Usage:
    ```python
    from llm_codable.sessions import TransformersSession

    session = TransformersSession("Qwen/Qwen2.5-0.5B-Instruct", device="mps")
    notes = await MeetingNotes.decode(transcript_text, session=session)
    ```
"""

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Dict, List, Optional

from llm_codable.sessions.base import (
    GenerationOptions,
    LanguageModelSession,
    ModelUnavailableError,
    Response,
    ResponseSnapshot,
    extract_json_text,
)
from llm_codable.sessions.device_utils import resolve_device

logger = logging.getLogger(__name__)

_END = object()


class TransformersSession(LanguageModelSession):
    """
    Session backed by a HuggingFace causal language model.

    Attributes:
        model_id: HuggingFace model identifier
        device: Device to run on (mps, cuda, cpu)
        model: Loaded AutoModelForCausalLM instance
        tokenizer: Loaded AutoTokenizer instance
        torch_dtype: Data type for model (float16 or float32)
    """

    def __init__(
        self,
        model_id: str,
        device: Optional[str] = None,
        torch_dtype: Optional[Any] = None,
        instructions: Optional[str] = None,
        include_schema_in_prompt: bool = True,
        model: Optional[Any] = None,
        tokenizer: Optional[Any] = None,
        **kwargs
    ):
        """
        Initialize transformers session.

        Args:
            model_id: HuggingFace model identifier or local directory
            device: "mps", "cuda", "cpu", or None for auto
            torch_dtype: PyTorch dtype (None: float16 on GPU, float32 on CPU)
            instructions: System instructions
            include_schema_in_prompt: Describe the schema in the system message
            model: Already loaded model to share between sessions
            tokenizer: Already loaded tokenizer to share between sessions
            **kwargs: Additional arguments for model loading
        """
        super().__init__(instructions=instructions, include_schema_in_prompt=include_schema_in_prompt)
        self.model_id = model_id
        self.model = model
        self.tokenizer = tokenizer

        self.device = resolve_device(device)
        self.torch_dtype = torch_dtype

        logger.info(f"Initializing TransformersSession: model={model_id}, device={self.device}")

        if self.model is None:
            self._load_model(**kwargs)
        if self.tokenizer is None:
            self._load_tokenizer()

    def _load_model(self, **kwargs):
        """Load HuggingFace model onto the target device."""
        try:
            import torch
            from transformers import AutoModelForCausalLM
        except ImportError as e:
            raise ModelUnavailableError(
                "transformers and torch are required. "
                "Install with: pip install 'llm-codable[transformers]'"
            ) from e

        if self.torch_dtype is None:
            # float16 on GPU for efficiency, float32 on CPU for compatibility
            self.torch_dtype = torch.float16 if self.device != "cpu" else torch.float32

        load_kwargs = {
            'torch_dtype': self.torch_dtype,
            'low_cpu_mem_usage': True,
        }
        load_kwargs.update(kwargs)

        logger.info(f"Loading model: {self.model_id} ({self.torch_dtype})")

        try:
            self.model = AutoModelForCausalLM.from_pretrained(self.model_id, **load_kwargs)
            self.model = self.model.to(torch.device(self.device))
            self.model.eval()
        except Exception as e:
            logger.error(f"Failed to load model: {e}")
            raise ModelUnavailableError(f"Failed to load model {self.model_id}: {e}") from e

        logger.info(f"Model loaded successfully on {self.device}")

    def _load_tokenizer(self):
        """Load HuggingFace tokenizer."""
        try:
            from transformers import AutoTokenizer
        except ImportError as e:
            raise ModelUnavailableError("transformers is required") from e

        try:
            self.tokenizer = AutoTokenizer.from_pretrained(self.model_id)
        except Exception as e:
            logger.error(f"Failed to load tokenizer: {e}")
            raise ModelUnavailableError(f"Failed to load tokenizer {self.model_id}: {e}") from e

        if self.tokenizer.pad_token is None:
            self.tokenizer.pad_token = self.tokenizer.eos_token

    def _prompt_text(self, messages: List[Dict[str, str]]) -> str:
        """Render chat messages with the model's chat template, if it has one."""
        if getattr(self.tokenizer, 'chat_template', None):
            return self.tokenizer.apply_chat_template(
                messages,
                tokenize=False,
                add_generation_prompt=True,
            )

        lines = [f"{m['role']}: {m['content']}" for m in messages]
        lines.append("assistant:")
        return "\n\n".join(lines)

    def _generation_kwargs(self, options: Optional[GenerationOptions]) -> Dict[str, Any]:
        resolved = (options or GenerationOptions()).resolve()
        do_sample = resolved['temperature'] > 0

        gen_kwargs = {
            'max_new_tokens': resolved['max_tokens'],
            'do_sample': do_sample,
            'pad_token_id': self.tokenizer.pad_token_id,
            'eos_token_id': self.tokenizer.eos_token_id,
        }
        if do_sample:
            gen_kwargs['temperature'] = resolved['temperature']
            gen_kwargs['top_p'] = resolved['top_p']
        if 'seed' in resolved:
            gen_kwargs['seed'] = resolved['seed']

        return gen_kwargs

    def _tokenize(self, prompt_text: str) -> Dict[str, Any]:
        inputs = self.tokenizer(prompt_text, return_tensors="pt")
        return {k: v.to(self.device) for k, v in inputs.items()}

    def _run_generate(self, inputs: Dict[str, Any], gen_kwargs: Dict[str, Any]) -> Any:
        """Call model.generate(), which already runs without gradient tracking."""
        gen_kwargs = dict(gen_kwargs)
        seed = gen_kwargs.pop('seed', None)
        if seed is not None:
            from transformers import set_seed
            set_seed(seed)

        return self.model.generate(**inputs, **gen_kwargs)

    def _generate_text(self, prompt_text: str, gen_kwargs: Dict[str, Any]) -> str:
        """Blocking generation; returns only the newly generated text."""
        inputs = self._tokenize(prompt_text)
        outputs = self._run_generate(inputs, gen_kwargs)

        prompt_length = inputs['input_ids'].shape[1]
        generated_tokens = outputs[0][prompt_length:]
        logger.debug(f"Generated {len(generated_tokens)} new tokens")

        return self.tokenizer.decode(generated_tokens, skip_special_tokens=True)

    async def respond(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions] = None,
    ) -> Response:
        """
        Generate a value of type ``generating`` from a schema-guided prompt.

        Raises:
            DecodingFailureError: If the reply contains no JSON value or the
                value does not fit the type
        """
        prompt_text = self._prompt_text(self.build_messages(prompt, generating))
        gen_kwargs = self._generation_kwargs(options)
        logger.debug(f"Generating with: {gen_kwargs}")

        try:
            text = await asyncio.to_thread(self._generate_text, prompt_text, gen_kwargs)
        except Exception as e:
            logger.error(f"Generation failed: {e}")
            raise

        raw_content = extract_json_text(text)
        content = self.parse_content(raw_content, generating)
        self.record_turn(prompt, raw_content)
        return Response(content=content, raw_content=raw_content)

    def stream_response(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[ResponseSnapshot]:
        prompt_text = self._prompt_text(self.build_messages(prompt, generating))
        gen_kwargs = self._generation_kwargs(options)
        return self.snapshots_from_chunks(
            prompt, self._stream_chunks(prompt_text, gen_kwargs), generating
        )

    def _create_streamer(self) -> Any:
        from transformers import TextIteratorStreamer

        return TextIteratorStreamer(self.tokenizer, skip_prompt=True, skip_special_tokens=True)

    async def _stream_chunks(self, prompt_text: str, gen_kwargs: Dict[str, Any]) -> AsyncIterator[str]:
        """Run generate() on a background thread and yield decoded text pieces."""
        streamer = self._create_streamer()
        inputs = self._tokenize(prompt_text)
        failure: List[BaseException] = []

        def worker():
            try:
                self._run_generate(inputs, {**gen_kwargs, 'streamer': streamer})
            except Exception as e:
                failure.append(e)
                # Unblock the consumer
                streamer.end()

        thread = threading.Thread(target=worker, daemon=True)
        thread.start()

        try:
            while True:
                text = await asyncio.to_thread(next, streamer, _END)
                if text is _END:
                    break
                yield text
        finally:
            await asyncio.to_thread(thread.join)

        if failure:
            logger.error(f"Generation failed: {failure[0]}")
            raise failure[0]

    def get_model_info(self) -> Dict[str, Any]:
        info = {
            'model_id': self.model_id,
            'device': self.device,
            'dtype': str(self.torch_dtype),
            'backend': 'transformers',
        }

        if self.tokenizer is not None:
            info['vocab_size'] = len(self.tokenizer)

        config = getattr(self.model, 'config', None)
        if config is not None and hasattr(config, 'max_position_embeddings'):
            info['context_length'] = config.max_position_embeddings

        return info

    def __repr__(self) -> str:
        return (
            f"TransformersSession(model={self.model_id}, "
            f"device={self.device}, dtype={self.torch_dtype})"
        )
