"""
scriptalchemy.llm.master - Cross-script master template (LLM Pass 3).

Synthesizes completed analyses into one structural blueprint, a winning
formula, and execution tips.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from scriptalchemy.config import AnalysisConfig
from scriptalchemy.exceptions import TemplateGenerationError
from scriptalchemy.llm.client import StructuredLLM
from scriptalchemy.llm.parsing import parse_llm_json, validate_template_response
from scriptalchemy.llm.schemas import MASTER_TEMPLATE_SCHEMA
from scriptalchemy.llm.templates import PromptTemplateManager, format_analyses_for_prompt
from scriptalchemy.logging import logger
from scriptalchemy.models import MasterTemplate, ScriptAnalysis


def build_master_template(
    analyses: Sequence[ScriptAnalysis],
    client: StructuredLLM,
    config: AnalysisConfig | None = None,
    template_manager: PromptTemplateManager | None = None,
) -> MasterTemplate:
    """Synthesize a master template from completed analyses.

    Args:
        analyses: Completed ScriptAnalysis objects (at least one)
        client: StructuredLLM implementation
        config: Supplies the output language
        template_manager: PromptTemplateManager instance

    Returns:
        MasterTemplate with provenance fields set

    Raises:
        TemplateGenerationError: On any failure, including missing credentials
    """
    if not analyses:
        raise TemplateGenerationError("At least one completed analysis is required")

    config = config or AnalysisConfig()
    template_manager = template_manager or PromptTemplateManager()

    prompt = template_manager.render(
        "master_template.txt",
        {
            "SCRIPT_COUNT": len(analyses),
            "CONTEXT": format_analyses_for_prompt(analyses),
        },
        language=config.output_language,
    )

    logger.debug("Sending master template prompt (%d chars)", len(prompt))

    try:
        response = client.generate_structured(prompt, MASTER_TEMPLATE_SCHEMA)
        data = parse_llm_json(response)
        template = validate_template_response(data)
    except Exception as e:
        raise TemplateGenerationError(
            f"Template generation failed, verify your API key and model settings: {e}"
        ) from e

    model_name = getattr(client, "model", None)
    return template.model_copy(
        update={
            "llm_model": model_name if isinstance(model_name, str) else None,
            "generated_at": datetime.now().isoformat(timespec="seconds"),
            "source_count": len(analyses),
        }
    )
