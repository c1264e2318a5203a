# generate/__init__.py
# zipbundle – Generate subsystem exports

from .generate import (
    HtmlGenerator,
    GeneratorConfig,
    GenerationError,
    build_prompt,
    build_llm_config,
    clean_html_response,
    SYSTEM_INSTRUCTION,
)

__all__ = [
    "HtmlGenerator",
    "GeneratorConfig",
    "GenerationError",
    "build_prompt",
    "build_llm_config",
    "clean_html_response",
    "SYSTEM_INSTRUCTION",
]
