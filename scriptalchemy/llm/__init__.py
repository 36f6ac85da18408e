"""
scriptalchemy.llm - LLM analysis passes.

Pipeline Stage 3: Three LLM passes:
- Pass 1: Global analysis per transcript (summary, scores, writing style)
- Pass 2: Per-batch segment labeling, reconciled onto the transcript
- Pass 3: Cross-script master template synthesis
"""

from __future__ import annotations
