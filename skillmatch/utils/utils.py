import json
from typing import Any, List

import requests

from skillmatch.config import OLLAMA_BASE_URL, LLM_MODEL, EMBED_MODEL, LLM_TIMEOUT, EMBED_TIMEOUT


def ollama_generate(prompt: str, model: str = None, temperature: float = 0.3, json_mode: bool = True) -> str:
    model = model or LLM_MODEL
    url = f"{OLLAMA_BASE_URL}/api/generate"
    payload = {
        "model": model,
        "prompt": prompt,
        "options": {"temperature": temperature},
        "stream": False  # important
    }
    if json_mode:
        payload["format"] = "json"
    resp = requests.post(url, json=payload, timeout=LLM_TIMEOUT)
    resp.raise_for_status()
    return resp.json().get("response", "") or ""


def ollama_embed(text: str, model: str = None) -> List[float]:
    url = f"{OLLAMA_BASE_URL}/api/embed"
    resp = requests.post(url, json={"model": model or EMBED_MODEL, "input": text}, timeout=EMBED_TIMEOUT)
    resp.raise_for_status()
    data = resp.json()
    embeddings = data.get("embeddings") or []
    if not embeddings:
        raise ValueError("Ollama returned no embedding")
    return [float(x) for x in embeddings[0]]


def safe_json(s: str, fallback: Any = None) -> Any:
    """Parse the first JSON object or array found in a model response."""
    if not s:
        return fallback
    try:
        return json.loads(s)
    except (TypeError, ValueError):
        pass
    # heuristics to find JSON inside
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = s.find(open_ch)
        end = s.rfind(close_ch)
        if start >= 0 and end > start:
            try:
                return json.loads(s[start:end + 1])
            except ValueError:
                continue
    return fallback
