# hajimi: Minimal requests-based client for the Generative Language REST API. Replies are consumed as server-sent events and yielded fragment by fragment; transient failures before the stream starts are retried with backoff.

import json
import os
import pathlib
import random
import time
from typing import Any, Dict, Iterable, Iterator, List, Optional

import requests

from .compactor import compact
from .config import GEMINI_BASE_URL, GEMINI_MODEL, MAX_OUTPUT_TOKENS, REQUEST_TIMEOUT, TEMPERATURE
from .context import Context
from .errors import HajimiError, StreamError
from .models import ModelInfo, Turn
from .settings import section

_RETRY_DELAYS = [1.0, 2.0, 4.0]


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
        system_prompt: str = "",
        max_retries: int = 3,
    ) -> None:
        """
        Initialize an HTTP client for the Gemini API.

        Value precedence (highest first):
          1) Constructor args (api_key/model/base_url)
          2) settings['api'] values (api_key, model, base_url) and settings['generation']
          3) Environment (GEMINI_API_KEY, GEMINI_MODEL, GEMINI_BASE_URL, HAJIMI_*)

        Raises:
            HajimiError: If no API key can be resolved.
        """
        api_cfg = section(settings, "api")
        gen_cfg = section(settings, "generation")

        resolved_api_key = api_key or api_cfg.get("api_key") or os.environ.get("GEMINI_API_KEY")
        if not resolved_api_key:
            raise HajimiError("No Gemini API key provided (GEMINI_API_KEY or settings.api.api_key).")
        self.model = model or api_cfg.get("model") or GEMINI_MODEL
        self.base_url = str(base_url or api_cfg.get("base_url") or GEMINI_BASE_URL).rstrip("/")
        self.temperature = float(gen_cfg.get("temperature", TEMPERATURE))
        self.max_output_tokens = int(gen_cfg.get("max_output_tokens", MAX_OUTPUT_TOKENS))
        self.system_prompt = system_prompt
        self.max_retries = max_retries
        self.timeout = REQUEST_TIMEOUT

        self.session = requests.Session()
        self.session.headers.update(
            {
                "x-goog-api-key": resolved_api_key,
                "Content-Type": "application/json",
            }
        )

    # ---------- request helpers ----------

    def _httpcalls_dir(self, ctx: Context) -> Optional[pathlib.Path]:
        """Resolve the request log directory from settings.logging.httpcalls, or None when disabled."""
        log_cfg = section(section(ctx.settings, "logging"), "httpcalls")
        enabled = log_cfg.get("enabled")
        if enabled is False:
            return None
        if enabled is True:
            custom_dir = log_cfg.get("dir")
            if custom_dir:
                cpath = pathlib.Path(str(custom_dir))
                base_dir = cpath if cpath.is_absolute() else (ctx.root / cpath)
            else:
                base_dir = ctx.root / ".httpcalls"
            base_dir.mkdir(parents=True, exist_ok=True)
            return base_dir
        # Only log if the default dir already exists
        maybe = ctx.root / ".httpcalls"
        return maybe if maybe.is_dir() else None

    def _log_request(self, ctx: Context, method: str, url: str, payload: Any) -> Optional[pathlib.Path]:
        try:
            base_dir = self._httpcalls_dir(ctx)
            if base_dir is None:
                return None
            http_file = base_dir / f"call-{int(time.time() * 1000)}.http"
            headers_for_log = dict(self.session.headers)
            if "x-goog-api-key" in headers_for_log:
                headers_for_log["x-goog-api-key"] = "{{GEMINI_API_KEY}}"
            dump_http_file(ctx, str(http_file), url, method, headers_for_log, payload)
            return http_file
        except Exception:
            # Non-fatal: proceed without logging
            return None

    def _request(self, ctx: Context, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send a request, retrying timeouts, connection errors and HTTP 5xx.

        Raises:
            StreamError: On 4xx responses or once retries are exhausted.
        """
        http_file = self._log_request(ctx, method, url, kwargs.get("json"))
        attempt = 0
        while True:
            attempt += 1
            t0 = time.time()
            try:
                r = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt <= self.max_retries:
                    delay = self._backoff(attempt)
                    ctx.log(f"Gemini API {type(e).__name__} on attempt {attempt}; retrying in {delay:.2f}s...")
                    time.sleep(delay)
                    continue
                raise StreamError(f"Gemini API unreachable after {attempt} attempt(s): {e}") from e
            except requests.exceptions.RequestException as e:
                raise StreamError(f"Gemini API request failed: {e}") from e

            if http_file is not None:
                try:
                    with open(http_file, "a", encoding="utf-8") as f:
                        elapsed_ms = int((time.time() - t0) * 1000)
                        f.write(f"\n\n### Response (elapsed_ms: {elapsed_ms})\n")
                        f.write(f"HTTP/1.1 {r.status_code} {getattr(r, 'reason', '')}\n")
                except OSError:
                    pass

            if r.status_code == 200:
                return r
            body = r.text[:2000]
            r.close()
            if r.status_code >= 500 and attempt <= self.max_retries:
                delay = self._backoff(attempt)
                ctx.log(f"Gemini API attempt {attempt} received {r.status_code}; retrying in {delay:.2f}s...")
                time.sleep(delay)
                continue
            # Do not retry 4xx; surface a truncated body for diagnostics.
            raise StreamError(f"Gemini API error {r.status_code}: {body}", status_code=r.status_code)

    @staticmethod
    def _backoff(attempt: int) -> float:
        base_delay = _RETRY_DELAYS[min(attempt - 1, len(_RETRY_DELAYS) - 1)]
        return base_delay * random.uniform(0.5, 1.5)

    def _model_path(self, model_id: str) -> str:
        return model_id if model_id.startswith("models/") else f"models/{model_id}"

    def build_payload(self, turns: Iterable[Turn]) -> Dict[str, Any]:
        """Build the generateContent body from compacted turns plus system instruction and generation config."""
        payload: Dict[str, Any] = {
            "contents": [t.to_wire() for t in compact(turns)],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        if self.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": self.system_prompt}]}
        return payload

    # ---------- public API ----------

    def stream_reply(self, ctx: Context, model_id: str, turns: Iterable[Turn]) -> Iterator[str]:
        """
        Stream a reply for the conversation so far.

        Yields text fragments in the order the service produces them. Closing the
        generator early (e.g. on Ctrl-C) closes the underlying HTTP response.

        Raises:
            StreamError: On HTTP failures, broken streams, undecodable events, API
                error events, or a prompt blocked by the service.
        """
        url = f"{self.base_url}/{self._model_path(model_id)}:streamGenerateContent"
        r = self._request(ctx, "POST", url, params={"alt": "sse"}, json=self.build_payload(turns), stream=True)
        try:
            for data in _iter_sse_data(r):
                try:
                    event = json.loads(data)
                except json.JSONDecodeError as e:
                    raise StreamError(f"undecodable stream event: {data[:200]}") from e
                for piece in extract_text(event):
                    yield piece
        except requests.exceptions.RequestException as e:
            raise StreamError(f"stream interrupted: {e}") from e
        except UnicodeDecodeError as e:
            raise StreamError(f"stream is not valid UTF-8: {e}") from e
        finally:
            r.close()

    def list_models(self, ctx: Context) -> List[ModelInfo]:
        """
        Enumerate models that support generateContent, following pagination.

        Raises:
            StreamError: If any page cannot be fetched or decoded.
        """
        url = f"{self.base_url}/models"
        models: List[ModelInfo] = []
        page_token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"pageSize": 1000}
            if page_token:
                params["pageToken"] = page_token
            r = self._request(ctx, "GET", url, params=params)
            try:
                body = r.json()
            except ValueError as e:
                raise StreamError(f"could not decode model list: {e}") from e
            for obj in body.get("models") or []:
                info = ModelInfo.from_api(obj)
                if not info.methods or "generateContent" in info.methods:
                    models.append(info)
            page_token = body.get("nextPageToken")
            if not page_token:
                return models


def _iter_sse_data(r: requests.Response) -> Iterator[str]:
    """Yield the data payload of each server-sent event (multi-line data fields are joined)."""
    buf: List[str] = []
    # Server-sent events are UTF-8 regardless of the declared charset.
    for line in r.iter_lines():
        if line is None:
            continue
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        if line == "":
            if buf:
                yield "\n".join(buf)
                buf = []
            continue
        if line.startswith("data:"):
            buf.append(line[5:].lstrip(" "))
    if buf:
        yield "\n".join(buf)


def extract_text(event: Dict[str, Any]) -> List[str]:
    """
    Pull the text pieces out of one streamed GenerateContentResponse.

    Raises:
        StreamError: If the event carries an API error or a prompt block reason.
    """
    if not isinstance(event, dict):
        raise StreamError(f"unexpected stream event: {event!r}"[:200])
    err = event.get("error")
    if isinstance(err, dict):
        raise StreamError(f"Gemini API error {err.get('code')}: {err.get('message')}", status_code=err.get("code"))
    candidates = event.get("candidates") or []
    if not candidates:
        block = (event.get("promptFeedback") or {}).get("blockReason")
        if block:
            raise StreamError(f"prompt blocked by the service: {block}")
        return []
    pieces: List[str] = []
    content = candidates[0].get("content") or {}
    for part in content.get("parts") or []:
        # Thought summaries are not part of the visible reply.
        if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought"):
            pieces.append(part["text"])
    return pieces


def dump_http_file(ctx: Context, file: str, url: str, method: str, headers: Dict[str, str], obj: Any) -> None:
    """
    Write a human-readable HTTP request dump to disk for debugging.

    Best-effort: serialization and I/O errors are reported through ctx instead of raised.
    """
    try:
        json_str = json.dumps(obj, indent=2, ensure_ascii=False) if obj is not None else ""
        with open(file, "w", encoding="utf-8") as f:
            f.write(f"{method.upper()} {url}\n")
            for key, value in headers.items():
                f.write(f"{key}: {value}\n")
            f.write("\n")
            f.write(json_str)
        ctx.log(f"HTTP request dumped to {file}")
    except TypeError as e:
        ctx.error_message(f"The object could not be serialized to JSON. Details: {e}")
    except OSError as e:
        ctx.error_message(f"Could not write to file {file}. Details: {e}")
