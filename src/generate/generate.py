"""
generate.py
Single-file HTML generation through a hosted or local chat model.

The serialized project payload is embedded in a user prompt, sent to a
qwen-agent Assistant along with the bundling instructions, and the reply
is cleaned into a bare HTML document.
"""

import re
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
from qwen_agent.agents import Assistant


# ============================================================
# Exceptions
# ============================================================

class GenerationError(Exception):
    """The model call failed or returned nothing usable."""
    pass


# ============================================================
# Prompts
# ============================================================

SYSTEM_INSTRUCTION = """You are an expert frontend build tool specialized in single-file bundling.
You will receive a JSON array describing the files of a React application.

GOAL:
Turn the multi-file project into ONE self-contained index.html that runs in a
modern browser with no build step (no Webpack, no Vite).

OUTPUT FORMAT:
- Return ONLY the raw HTML.
- Do not wrap it in markdown code fences.
- Do not add explanations.
- The output must start with <!DOCTYPE html>.

REQUIREMENTS:
1. Libraries: load React 18 and ReactDOM 18 UMD builds from unpkg, and
   @babel/standalone for in-browser JSX/TypeScript transformation. Use UMD
   builds from a CDN for other libraries, or mock them when none exists.
2. Styles: inline all CSS in a <style> block. If the source uses Tailwind,
   include the Tailwind CDN script.
3. Assets: convert SVGs used as components into inline React components.
   Replace local image references with a placeholder URL and a comment.
4. Code: merge everything into a single <script type="text/babel"
   data-presets="env,react">. Define helpers and child components before the
   components that use them. Remove ES module imports/exports and read hooks
   from the global React object. End by mounting <App /> on #root with
   ReactDOM.createRoot.
5. Routing: use HashRouter if react-router-dom is used. Simplify to a
   single view when necessary."""

PROMPT_TEMPLATE = """Here is the file structure and content of a React project (JSON format):

```json
{project_structure}
```

Convert this into a single index.html file following the system instructions.
Ensure all dependencies are loaded via CDN.
Ensure all CSS is inlined.
Ensure the script is a single valid Babel script."""


def build_prompt(project_structure: str) -> str:
    """Embed the serialized project in the user prompt."""
    return PROMPT_TEMPLATE.format(project_structure=project_structure)


_FENCED_RE = re.compile(r"^```(?:html)?\s*([\s\S]*?)\s*```$")


def clean_html_response(text: str) -> str:
    """
    Strip a markdown code fence wrapped around the model output.

    Handles a complete ```html ... ``` block, and falls back to trimming a
    dangling opening or closing fence.
    """
    cleaned = text.strip()

    match = _FENCED_RE.match(cleaned)
    if match:
        return match.group(1)

    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:html)?", "", cleaned)
        cleaned = re.sub(r"```$", "", cleaned)
        cleaned = cleaned.strip()

    return cleaned


# ============================================================
# Configuration
# ============================================================

@dataclass
class GeneratorConfig:
    """Configuration for the HTML generator."""
    # Model configuration
    model: str = "qwen-max"
    model_server: Optional[str] = None  # e.g., "http://localhost:8000/v1" for vLLM/Ollama
    api_key: Optional[str] = None

    # Generation parameters
    temperature: float = 0.2
    top_p: float = 0.9
    max_tokens: int = 8192

    verbose: bool = True


def build_llm_config(config: GeneratorConfig) -> Dict[str, Any]:
    """Translate a GeneratorConfig into a qwen-agent llm config dict."""
    llm_cfg: Dict[str, Any] = {
        'model': config.model,
        'generate_cfg': {
            'top_p': config.top_p,
            'temperature': config.temperature,
            'max_tokens': config.max_tokens,
        }
    }

    if config.model_server:
        llm_cfg['model_server'] = config.model_server
    if config.api_key:
        llm_cfg['api_key'] = config.api_key

    return llm_cfg


# ============================================================
# Generator
# ============================================================

class HtmlGenerator:
    """
    Converts a serialized project into a single HTML document.

    Wraps a qwen-agent Assistant; any object with a compatible
    ``run(messages=...)`` generator can be passed as ``agent``.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, agent: Any = None):
        self.config = config or GeneratorConfig()

        if agent is None:
            # Remote endpoints need a key; local servers take "EMPTY"
            if self.config.model_server and not self.config.model_server.startswith(
                ("http://localhost", "http://127.0.0.1")
            ) and not self.config.api_key:
                raise GenerationError("API Key is missing.")

            try:
                agent = Assistant(
                    llm=build_llm_config(self.config),
                    system_message=SYSTEM_INSTRUCTION,
                    function_list=[],
                )
            except Exception as e:
                raise GenerationError(f"Failed to initialize model {self.config.model}: {e}") from e

        self.agent = agent

        if self.config.verbose:
            print(f"✓ Generator initialized with model: {self.config.model}")

    def _run(self, prompt: str) -> List[Dict[str, Any]]:
        messages = [{'role': 'user', 'content': prompt}]

        # The agent streams growing snapshots; keep the last one
        response: List[Dict[str, Any]] = []
        for response_chunk in self.agent.run(messages=messages):
            response = response_chunk
        return response

    def generate(self, project_structure: str) -> str:
        """
        Generate the bundled HTML for a serialized project.

        Args:
            project_structure: Output of serialize_files

        Returns:
            Cleaned HTML document text

        Raises:
            GenerationError: the model call failed or returned no text
        """
        if self.config.verbose:
            print(f"  Model is analyzing project structure ({len(project_structure):,} chars)...")

        try:
            response = self._run(build_prompt(project_structure))
        except GenerationError:
            raise
        except Exception as e:
            message = str(e) or "An error occurred while communicating with the model."
            if "400" in message:
                message += " (Bad Request - likely model configuration or prompt issue)"
            raise GenerationError(message) from e

        assistant_messages = [msg for msg in response if msg.get('role') == 'assistant']
        text = assistant_messages[-1].get('content', '') if assistant_messages else ''

        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Model returned an empty response.")

        return clean_html_response(text)
