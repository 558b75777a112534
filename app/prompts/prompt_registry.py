import yaml
from pathlib import Path
from typing import Any, Dict

REGISTRY_DIR = Path(__file__).resolve().parent / "registry"


class PromptRegistry:
    """
    Versioned critique prompts keyed by "prompt_id:version".

    A prompt either carries its own `messages.system` persona or borrows one
    through `system_prompt_ref`.
    """

    _cache: Dict[str, Dict[str, Any]] = {}

    @classmethod
    def load(cls, base: Path = REGISTRY_DIR):
        loaded = {}
        for file in sorted(base.rglob("*.yaml")):
            data = yaml.safe_load(file.read_text(encoding="utf-8"))
            cls._validate(file, data)
            loaded[f"{data['prompt_id']}:{data['version']}"] = data

        for key, data in loaded.items():
            ref = data.get("system_prompt_ref")
            if ref and ref not in loaded:
                raise ValueError(f"Prompt {key} borrows its persona from unknown prompt {ref}")

        cls._cache = loaded

    @classmethod
    def get(cls, prompt_id: str, version: str):
        if not cls._cache:
            cls.load()
        key = f"{prompt_id}:{version}"
        if key not in cls._cache:
            raise KeyError(f"Prompt not found: {key}")
        return cls._cache[key]

    @classmethod
    def system_prompt(cls, prompt: Dict[str, Any]) -> str:
        ref = prompt.get("system_prompt_ref")
        if ref:
            prompt_id, version = ref.split(":", 1)
            prompt = cls.get(prompt_id, version)
        return prompt["messages"]["system"]

    @staticmethod
    def _validate(file: Path, data: Any) -> None:
        if not isinstance(data, dict) or "prompt_id" not in data or "version" not in data:
            raise ValueError(f"{file.name}: a critique prompt needs prompt_id and version")
        if not isinstance(data.get("messages"), dict):
            raise ValueError(f"{file.name}: missing messages block")
        if "system" not in data["messages"] and "system_prompt_ref" not in data:
            raise ValueError(f"{file.name}: needs messages.system or system_prompt_ref")
        if "temperature" not in (data.get("model") or {}):
            raise ValueError(f"{file.name}: missing model.temperature")
