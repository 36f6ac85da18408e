"""Tests for scriptalchemy.llm parsing, reconciliation, and prompt helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import global_response, make_segment

from scriptalchemy.exceptions import LLMResponseError
from scriptalchemy.llm.parsing import (
    extract_result_array,
    normalize_score,
    parse_llm_json,
    validate_global_response,
    validate_template_response,
)
from scriptalchemy.llm.reconcile import (
    ANALYSIS_MISSING,
    BATCH_ERROR,
    fallback_batch,
    reconcile_batch,
    result_index,
)
from scriptalchemy.llm.templates import (
    PromptTemplateManager,
    build_full_text,
    format_analyses_for_prompt,
    format_segments_for_prompt,
    language_name,
)
from scriptalchemy.models import ScriptAnalysis, SegmentLabel, WritingStyle


class TestParseLLMJson:
    def test_parse_clean_json(self) -> None:
        result = parse_llm_json('{"summary": "ok"}')
        assert result["summary"] == "ok"

    def test_parse_json_with_markdown(self) -> None:
        """Test parsing JSON wrapped in markdown."""
        result = parse_llm_json('```json\n{"keyPatterns": []}\n```')
        assert result["keyPatterns"] == []

    def test_parse_json_with_trailing_commas(self) -> None:
        result = parse_llm_json('{"tips": ["a", "b",],}')
        assert result["tips"] == ["a", "b"]

    def test_parse_json_with_surrounding_text(self) -> None:
        result = parse_llm_json('Here is the result:\n{"summary": "x"}\nHope this helps.')
        assert result["summary"] == "x"

    def test_empty_response_raises(self) -> None:
        with pytest.raises(LLMResponseError):
            parse_llm_json("   ")

    def test_garbage_raises(self) -> None:
        with pytest.raises(LLMResponseError):
            parse_llm_json("I cannot help with that.")

    def test_array_is_not_an_object(self) -> None:
        with pytest.raises(LLMResponseError):
            parse_llm_json("[1, 2]")


class TestExtractResultArray:
    def test_bare_array(self) -> None:
        assert extract_result_array('[{"index": 1}]') == [{"index": 1}]

    def test_array_wrapped_in_object(self) -> None:
        response = '{"results": [{"index": 1, "label": "HOOK", "analysis": "Grabs"}]}'
        assert extract_result_array(response)[0]["label"] == "HOOK"

    def test_first_array_property_wins(self) -> None:
        response = '{"note": "x", "items": [{"index": 2}], "other": [{"index": 9}]}'
        assert extract_result_array(response) == [{"index": 2}]

    def test_fenced_array(self) -> None:
        assert extract_result_array('```json\n[{"index": 3}]\n```') == [{"index": 3}]

    def test_object_without_array_raises(self) -> None:
        with pytest.raises(LLMResponseError):
            extract_result_array('{"index": 1}')


class TestNormalizeScore:
    def test_in_range(self) -> None:
        assert normalize_score(72, "hookScore") == 72

    def test_float_is_rounded(self) -> None:
        assert normalize_score(71.6, "hookScore") == 72

    def test_clamps_by_default(self) -> None:
        assert normalize_score(140, "hookScore") == 100
        assert normalize_score(-5, "hookScore") == 0

    def test_reject_policy(self) -> None:
        with pytest.raises(LLMResponseError):
            normalize_score(140, "hookScore", policy="reject")

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(LLMResponseError):
            normalize_score("85", "hookScore")
        with pytest.raises(LLMResponseError):
            normalize_score(True, "hookScore")
        with pytest.raises(LLMResponseError):
            normalize_score(None, "hookScore")

    def test_infinite_score_rejected(self) -> None:
        with pytest.raises(LLMResponseError, match="finite"):
            normalize_score(float("inf"), "pacingScore")
        with pytest.raises(LLMResponseError, match="finite"):
            normalize_score(float("nan"), "pacingScore")


class TestValidateGlobalResponse:
    def test_valid_response(self) -> None:
        result = validate_global_response(global_response())
        assert result.hook_score == 85
        assert result.pacing_score == 78
        assert result.key_patterns == ["Direct address", "Problem then solution"]
        assert result.writing_style is not None
        assert result.writing_style.complexity_level == "Simple"

    def test_snake_case_keys_accepted(self) -> None:
        data = {"summary": "s", "pacing_score": 10, "hook_score": 20, "dominant_tone": "Calm"}
        result = validate_global_response(data)
        assert result.dominant_tone == "Calm"
        assert result.writing_style is None

    def test_missing_summary_raises(self) -> None:
        with pytest.raises(LLMResponseError):
            validate_global_response(global_response(summary=""))

    def test_out_of_range_score_clamped(self) -> None:
        result = validate_global_response(global_response(hookScore=120))
        assert result.hook_score == 100

    def test_out_of_range_score_rejected(self) -> None:
        with pytest.raises(LLMResponseError):
            validate_global_response(global_response(pacingScore=-3), score_policy="reject")

    def test_overflowing_score_in_json_rejected(self) -> None:
        data = parse_llm_json('{"summary": "s", "pacingScore": 1e999, "hookScore": 50}')
        with pytest.raises(LLMResponseError, match="pacingScore"):
            validate_global_response(data)

    def test_non_string_patterns_dropped(self) -> None:
        result = validate_global_response(global_response(keyPatterns=["ok", 3, " "]))
        assert result.key_patterns == ["ok"]


class TestValidateTemplateResponse:
    def test_valid_template(self) -> None:
        data = {
            "title": "The Morning Fix",
            "targetAudience": "Busy professionals",
            "structure": [
                {"section": "HOOK", "durationPercent": "10%", "description": "Open loop"},
                {"section": "cta", "durationPercent": 5, "examplePhrases": ["Follow for more"]},
            ],
            "winningFormula": "Problem, quick proof, routine",
            "tips": ["Keep it under a minute"],
        }
        template = validate_template_response(data)
        assert template.title == "The Morning Fix"
        assert [s.section for s in template.structure] == [SegmentLabel.HOOK, SegmentLabel.CTA]
        assert template.structure[1].duration_percent == "5"
        assert template.structure[1].example_phrases == ["Follow for more"]

    def test_unknown_section_becomes_other(self) -> None:
        template = validate_template_response({"title": "T", "structure": [{"section": "INTRO"}]})
        assert template.structure[0].section == SegmentLabel.OTHER

    def test_missing_structure_raises(self) -> None:
        with pytest.raises(LLMResponseError):
            validate_template_response({"title": "T"})

    def test_missing_title_gets_default(self) -> None:
        template = validate_template_response({"structure": []})
        assert template.title == "Untitled template"


class TestResultIndex:
    def test_accepts_int_float_and_string(self) -> None:
        assert result_index({"index": 4}) == 4
        assert result_index({"index": 4.0}) == 4
        assert result_index({"index": " 4 "}) == 4

    def test_rejects_other_values(self) -> None:
        assert result_index({"index": 4.5}) is None
        assert result_index({"index": True}) is None
        assert result_index({"index": "four"}) is None
        assert result_index("not a dict") is None


class TestReconcileBatch:
    def test_missing_entry_gets_fallback(self) -> None:
        batch = [make_segment(1, 0), make_segment(2, 2), make_segment(3, 4)]
        results = [
            {"index": 1, "label": "HOOK", "analysis": "Opens with a question"},
            {"index": 3, "label": "CTA", "analysis": "Asks to subscribe"},
        ]
        analyzed = reconcile_batch(batch, results)
        assert [a.index for a in analyzed] == [1, 2, 3]
        assert [a.label for a in analyzed] == [
            SegmentLabel.HOOK,
            SegmentLabel.MAIN_CONTENT,
            SegmentLabel.CTA,
        ]
        assert analyzed[1].rationale == ANALYSIS_MISSING

    def test_first_duplicate_wins(self) -> None:
        batch = [make_segment(1, 0)]
        results = [
            {"index": 1, "label": "SETUP", "analysis": "first"},
            {"index": 1, "label": "ENDING", "analysis": "second"},
        ]
        analyzed = reconcile_batch(batch, results)
        assert analyzed[0].label == SegmentLabel.SETUP
        assert analyzed[0].rationale == "first"

    def test_invalid_label_gets_fallback(self) -> None:
        batch = [make_segment(1, 0)]
        analyzed = reconcile_batch(batch, [{"index": 1, "label": "CLIMAX", "analysis": "x"}])
        assert analyzed[0].label == SegmentLabel.MAIN_CONTENT
        assert analyzed[0].rationale == ANALYSIS_MISSING

    def test_label_matching_is_case_insensitive(self) -> None:
        batch = [make_segment(1, 0)]
        analyzed = reconcile_batch(batch, [{"index": 1, "label": "pattern_interrupt"}])
        assert analyzed[0].label == SegmentLabel.PATTERN_INTERRUPT
        assert analyzed[0].rationale == ANALYSIS_MISSING

    def test_results_for_unknown_segments_ignored(self) -> None:
        batch = [make_segment(5, 0)]
        analyzed = reconcile_batch(batch, [{"index": 99, "label": "HOOK"}, "junk", None])
        assert len(analyzed) == 1
        assert analyzed[0].label == SegmentLabel.MAIN_CONTENT

    def test_segment_fields_are_copied(self) -> None:
        segment = make_segment(7, 12.0, 15.5, text="Original words")
        analyzed = reconcile_batch([segment], [{"index": 7, "label": "HOOK", "analysis": "Why"}])
        assert analyzed[0].text == "Original words"
        assert analyzed[0].start_seconds == 12.0
        assert analyzed[0].end_seconds == 15.5

    def test_serializes_rationale_as_analysis(self) -> None:
        analyzed = reconcile_batch([make_segment(1, 0)], [])
        data = analyzed[0].to_dict()
        assert data["analysis"] == ANALYSIS_MISSING
        assert data["startTime"] == "00:00:00,000"


class TestFallbackBatch:
    def test_labels_everything_main_content(self) -> None:
        batch = [make_segment(1, 0), make_segment(2, 2)]
        analyzed = fallback_batch(batch)
        assert all(a.label == SegmentLabel.MAIN_CONTENT for a in analyzed)
        assert all(a.rationale == BATCH_ERROR for a in analyzed)


class TestPromptHelpers:
    def test_format_segments_for_prompt(self) -> None:
        text = format_segments_for_prompt([make_segment(3, 1.5, 4.0, text="Hello there")])
        assert text == "ID:3 [00:00:01,500 - 00:00:04,000] Hello there"

    def test_build_full_text_truncates(self) -> None:
        segments = [make_segment(1, 0, text="abc"), make_segment(2, 2, text="def")]
        assert build_full_text(segments, 300_000) == "abc def"
        assert build_full_text(segments, 5) == "abc d"

    def test_format_analyses_for_prompt(self) -> None:
        analyses = [
            ScriptAnalysis(
                summary="First",
                pacing_score=50,
                hook_score=60,
                dominant_tone="Calm",
                key_patterns=["Lists", "Stories"],
                writing_style=WritingStyle(instructional_directive="Slow down"),
            ),
            ScriptAnalysis(summary="Second", pacing_score=70, hook_score=80),
        ]
        text = format_analyses_for_prompt(analyses)
        first, second = text.split("\n---\n")
        assert first.startswith("Script 1:\nSummary: First")
        assert "Patterns: Lists, Stories" in first
        assert "Voice Instruction: Slow down" in first
        assert "Voice Instruction: N/A" in second

    def test_language_name(self) -> None:
        assert language_name("vi") == "Vietnamese"
        assert language_name("xx") == "English"


class TestPromptTemplateManager:
    def test_lists_packaged_templates(self) -> None:
        names = PromptTemplateManager().list_templates()
        assert "global_analysis.txt" in names
        assert "batch_labels.txt" in names
        assert "master_template.txt" in names

    def test_render_includes_language_rule(self) -> None:
        prompt = PromptTemplateManager().render(
            "global_analysis.txt", {"TRANSCRIPT": "hello world"}, language="vi"
        )
        assert "**Vietnamese**" in prompt
        assert '"hello world"' in prompt

    def test_render_lists_labels(self) -> None:
        prompt = PromptTemplateManager().render(
            "batch_labels.txt", {"SUMMARY": "s", "SEGMENTS": "ID:1 [a - b] t"}
        )
        assert "HOOK, SETUP, MAIN_CONTENT, PATTERN_INTERRUPT, ENDING, CTA, OTHER" in prompt

    def test_missing_template_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            PromptTemplateManager().get_template("nope.txt")

    def test_project_override_directory(self, tmp_path: Path) -> None:
        (tmp_path / "language_rule.txt").write_text("Write in {{ LANGUAGE_NAME }}.")
        (tmp_path / "global_analysis.txt").write_text(
            '{% include "language_rule.txt" %} Custom: {{ TRANSCRIPT }}'
        )
        prompt = PromptTemplateManager(tmp_path).render(
            "global_analysis.txt", {"TRANSCRIPT": "x"}, language="en"
        )
        assert prompt == "Write in English. Custom: x"
